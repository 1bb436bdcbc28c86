from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List

from payee_report.logging_setup import get_logger

logger = get_logger(__name__)

SORT_BY_NAME = "name"
SORT_BY_INCOME = "income"
SORT_BY_EXPENSE = "expense"
SORT_BY_DIFFERENCE = "difference"
SORT_KEYS = {SORT_BY_NAME, SORT_BY_INCOME, SORT_BY_EXPENSE, SORT_BY_DIFFERENCE}
DEFAULT_SORT_KEY = SORT_BY_DIFFERENCE

# Table column positions used by the report header.
SORT_COLUMNS = {
    1: SORT_BY_NAME,
    2: SORT_BY_INCOME,
    3: SORT_BY_EXPENSE,
    4: SORT_BY_DIFFERENCE,
}


@dataclass(frozen=True)
class ReportRow:
    payee_id: int | None
    name: str
    income: Decimal
    expense: Decimal

    @property
    def difference(self) -> Decimal:
        return self.income + self.expense


def normalize_sort_key(value: str | int | None) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        normalized = SORT_COLUMNS.get(value)
    elif isinstance(value, str):
        normalized = value.strip().lower()
        if normalized.isdigit():
            normalized = SORT_COLUMNS.get(int(normalized))
    else:
        normalized = None

    if normalized not in SORT_KEYS:
        if value is not None:
            logger.debug("Unknown sort key %r; using %s", value, DEFAULT_SORT_KEY)
        return DEFAULT_SORT_KEY
    return normalized


def rank_rows(rows: Iterable[ReportRow], sort_key: str | int | None = None) -> List[ReportRow]:
    key = normalize_sort_key(sort_key)
    if key == SORT_BY_NAME:
        return sorted(rows, key=lambda row: row.name)
    if key == SORT_BY_INCOME:
        return sorted(rows, key=lambda row: (row.income, row.name))
    if key == SORT_BY_EXPENSE:
        return sorted(rows, key=lambda row: (row.expense, row.name))
    return sorted(rows, key=lambda row: (row.difference, row.name))
