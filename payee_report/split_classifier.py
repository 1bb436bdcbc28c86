"""Income/expense classification of a single transaction.

A transaction's payee receives an ``(income_delta, expense_delta)`` pair in
base currency. Expense is kept non-positive. When split entries exist they
replace the parent amount and each entry is routed by its own sign, so a
withdrawal holding a refund-like split registers partial income and a deposit
holding a negative adjustment registers partial expense.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

from payee_report.currency_rates import ZERO, coerce_amount, convert_to_base

DEPOSIT = "deposit"
WITHDRAWAL = "withdrawal"
TRANSFER = "transfer"
SUPPORTED_TYPES = {DEPOSIT, WITHDRAWAL, TRANSFER}

STATUS_NONE = "none"
STATUS_VOID = "void"


@dataclass(frozen=True)
class Transaction:
    id: int
    account_id: int
    payee_id: int | None
    date: date | datetime
    amount: Decimal
    type: str
    status: str = STATUS_NONE


@dataclass(frozen=True)
class SplitEntry:
    transaction_id: int
    amount: Decimal


def normalize_type(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in SUPPORTED_TYPES:
        raise ValueError(f"Unsupported transaction type: {value}")
    return normalized


def is_transfer(value: str) -> bool:
    return value.strip().lower() == TRANSFER


def normalize_status(value: str | None) -> str:
    # Statuses other than void are passed through; only void affects totals.
    if not value:
        return STATUS_NONE
    return value.strip().lower().replace("-", "_").replace(" ", "_") or STATUS_NONE


def classify_transaction(
    transaction: Transaction,
    splits: Sequence[SplitEntry],
    rate: Decimal,
) -> tuple[Decimal, Decimal]:
    txn_type = normalize_type(transaction.type)
    if txn_type == TRANSFER:
        raise ValueError("Transfers do not contribute to payee income or expense.")

    income = ZERO
    expense = ZERO
    if not splits:
        if txn_type == DEPOSIT:
            income += convert_to_base(transaction.amount, rate)
        else:
            expense -= convert_to_base(transaction.amount, rate)
        return income, expense

    # Zero-valued entries count as non-negative on both sides.
    for entry in splits:
        signed = coerce_amount(entry.amount)
        amount = convert_to_base(signed, rate)
        if txn_type == DEPOSIT:
            if signed >= ZERO:
                income += amount
            else:
                expense += amount
        else:
            if signed < ZERO:
                income -= amount
            else:
                expense -= amount
    return income, expense

