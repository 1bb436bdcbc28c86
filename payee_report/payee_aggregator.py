from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping, Sequence

from payee_report.currency_rates import ZERO, AccountRates
from payee_report.date_ranges import DateRange
from payee_report.logging_setup import get_logger
from payee_report.split_classifier import (
    STATUS_VOID,
    SplitEntry,
    Transaction,
    classify_transaction,
    is_transfer,
    normalize_status,
)

logger = get_logger(__name__)

FALLBACK_RATE = Decimal("1")


class ReportDataError(ValueError):
    """Raised when the input dataset is internally inconsistent."""


@dataclass
class PayeeStat:
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def difference(self) -> Decimal:
        return self.income + self.expense

    def add(self, income_delta: Decimal, expense_delta: Decimal) -> None:
        self.income += income_delta
        self.expense += expense_delta


@dataclass(frozen=True)
class AggregationResult:
    stats: Mapping[int | None, PayeeStat] = field(default_factory=dict)
    positive_total: Decimal = ZERO
    negative_total: Decimal = ZERO
    fallback_accounts: frozenset[int] = frozenset()


def aggregate_payee_stats(
    transactions: Iterable[Transaction],
    splits_by_transaction: Mapping[int, Sequence[SplitEntry]],
    account_rates: AccountRates,
    date_range: DateRange,
    ignore_future: bool = False,
    today: date | None = None,
) -> AggregationResult:
    transactions = list(transactions)
    _check_split_references(transactions, splits_by_transaction)
    cutoff = today or date.today()

    stats: dict[int | None, PayeeStat] = {}
    positive_total = ZERO
    negative_total = ZERO
    fallback_accounts: set[int] = set()

    for txn in transactions:
        if normalize_status(txn.status) == STATUS_VOID:
            continue
        if is_transfer(txn.type):
            continue
        if ignore_future and _as_date(txn.date) > cutoff:
            continue
        if not date_range.contains(txn.date):
            continue

        rate = account_rates.rate_for(txn.account_id)
        if rate is None:
            if txn.account_id not in fallback_accounts:
                logger.warning(
                    "Missing conversion rate for account %s; using %s",
                    txn.account_id,
                    FALLBACK_RATE,
                )
            fallback_accounts.add(txn.account_id)
            rate = FALLBACK_RATE

        try:
            income_delta, expense_delta = classify_transaction(
                txn,
                splits_by_transaction.get(txn.id, ()),
                rate,
            )
        except ValueError as exc:
            raise ReportDataError(f"Transaction {txn.id}: {exc}") from exc
        stats.setdefault(txn.payee_id, PayeeStat()).add(income_delta, expense_delta)
        positive_total += income_delta
        negative_total += expense_delta

    return AggregationResult(
        stats={payee_id: stats[payee_id] for payee_id in sorted(stats, key=_payee_order)},
        positive_total=positive_total,
        negative_total=negative_total,
        fallback_accounts=frozenset(fallback_accounts),
    )


def _check_split_references(
    transactions: Sequence[Transaction],
    splits_by_transaction: Mapping[int, Sequence[SplitEntry]],
) -> None:
    known_ids = {txn.id for txn in transactions}
    orphaned = sorted(set(splits_by_transaction) - known_ids)
    if orphaned:
        raise ReportDataError(
            f"Split entries reference unknown transactions: {orphaned}"
        )
    for transaction_id, entries in splits_by_transaction.items():
        for entry in entries:
            if entry.transaction_id != transaction_id:
                raise ReportDataError(
                    f"Split entry for transaction {entry.transaction_id} "
                    f"grouped under transaction {transaction_id}"
                )


# Transactions without a payee sort after every known payee.
def _payee_order(payee_id: int | None) -> tuple[bool, int]:
    return (payee_id is None, payee_id or 0)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
