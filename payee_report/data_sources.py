"""Read-only data providers consumed by the payee report.

A report run only reads through the ``ReportDataSource`` methods, so any
backing store (the SQL tables in ``payee_report.store`` or plain in-memory
collections for tests) can be plugged in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Optional, Protocol, Sequence

from payee_report.currency_rates import Account, UnknownRateError, normalize_currency
from payee_report.split_classifier import SplitEntry, Transaction


class ReportDataSource(Protocol):
    def accounts(self) -> Sequence[Account]: ...

    def currency_rate(self, currency: str) -> Decimal: ...

    def transactions(self) -> Sequence[Transaction]: ...

    def split_entries_by_transaction(self) -> Mapping[int, Sequence[SplitEntry]]: ...

    def payee_name(self, payee_id: int) -> Optional[str]: ...


@dataclass
class InMemoryReportDataSource:
    account_list: Sequence[Account] = field(default_factory=list)
    currency_rates: Mapping[str, Decimal] = field(default_factory=dict)
    transaction_list: Sequence[Transaction] = field(default_factory=list)
    split_entries: Sequence[SplitEntry] = field(default_factory=list)
    payee_names: Mapping[int, str] = field(default_factory=dict)

    def accounts(self) -> Sequence[Account]:
        return list(self.account_list)

    def currency_rate(self, currency: str) -> Decimal:
        normalized = normalize_currency(currency)
        rates = {normalize_currency(code): rate for code, rate in self.currency_rates.items()}
        try:
            return rates[normalized]
        except KeyError as exc:
            raise UnknownRateError(f"Unsupported currency: {normalized}") from exc

    def transactions(self) -> Sequence[Transaction]:
        return list(self.transaction_list)

    def split_entries_by_transaction(self) -> Mapping[int, Sequence[SplitEntry]]:
        return group_split_entries(self.split_entries)

    def payee_name(self, payee_id: int) -> Optional[str]:
        return self.payee_names.get(payee_id)


def group_split_entries(entries: Sequence[SplitEntry]) -> dict[int, list[SplitEntry]]:
    grouped: dict[int, list[SplitEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.transaction_id, []).append(entry)
    return grouped
