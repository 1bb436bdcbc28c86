from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, Mapping

from payee_report.logging_setup import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


class UnknownRateError(LookupError):
    """Raised when a currency has no base-currency conversion rate."""


@dataclass(frozen=True)
class Account:
    id: int
    currency: str


@dataclass(frozen=True)
class AccountRates:
    """Base-currency multipliers per account for a single report run.

    Accounts whose currency could not be resolved are listed in
    ``unresolved`` and have no entry in ``rates``.
    """

    rates: Mapping[int, Decimal] = field(default_factory=dict)
    unresolved: frozenset[int] = frozenset()

    def rate_for(self, account_id: int) -> Decimal | None:
        return self.rates.get(account_id)

    def __contains__(self, account_id: object) -> bool:
        return account_id in self.rates

    def __len__(self) -> int:
        return len(self.rates)


def resolve_account_rates(
    accounts: Iterable[Account],
    rate_lookup: Callable[[str], Decimal],
) -> AccountRates:
    rates: dict[int, Decimal] = {}
    unresolved: set[int] = set()
    for account in accounts:
        try:
            currency = normalize_currency(account.currency)
            rate = coerce_amount(rate_lookup(currency))
        except (UnknownRateError, ValueError) as exc:
            logger.warning(
                "No base conversion rate for account %s (%s): %s",
                account.id,
                account.currency,
                exc,
            )
            unresolved.add(account.id)
            continue
        if rate <= ZERO:
            logger.warning(
                "Ignoring non-positive conversion rate %s for account %s (%s)",
                rate,
                account.id,
                currency,
            )
            unresolved.add(account.id)
            continue
        rates[account.id] = rate
    return AccountRates(rates=rates, unresolved=frozenset(unresolved))


def convert_to_base(amount: Decimal | int | float | str, rate: Decimal) -> Decimal:
    return coerce_amount(amount) * rate


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code.")
    return normalized


def coerce_amount(amount: Decimal | int | float | str) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))
