from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    select,
)
from sqlalchemy.engine import Engine

from payee_report.currency_rates import (
    Account,
    UnknownRateError,
    coerce_amount,
    normalize_currency,
)
from payee_report.data_sources import group_split_entries
from payee_report.split_classifier import STATUS_NONE, SplitEntry, Transaction

metadata = MetaData()

currencies = Table(
    "currencies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(3), unique=True, nullable=False),
    Column("name", String(255)),
    Column("base_conv_rate", Numeric(18, 8)),
)

accounts = Table(
    "accounts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("currency_id", Integer, ForeignKey("currencies.id"), nullable=False),
)

payees = Table(
    "payees",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", Integer, ForeignKey("accounts.id"), nullable=False),
    Column("payee_id", Integer, ForeignKey("payees.id")),
    Column("date", DateTime, nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("type", String(20), nullable=False),
    Column("status", String(20), nullable=False, server_default=STATUS_NONE),
)

split_transactions = Table(
    "split_transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("transaction_id", Integer, ForeignKey("transactions.id"), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
)


class SqlReportDataSource:
    """Report data read from the SQL tables defined in this module."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def accounts(self) -> Sequence[Account]:
        stmt = (
            select(accounts.c.id, currencies.c.code)
            .select_from(accounts.join(currencies, accounts.c.currency_id == currencies.c.id))
            .order_by(accounts.c.id.asc())
        )
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [Account(id=row["id"], currency=row["code"]) for row in rows]

    def currency_rate(self, currency: str) -> Decimal:
        normalized = normalize_currency(currency)
        with self.engine.connect() as conn:
            rate = conn.execute(
                select(currencies.c.base_conv_rate).where(currencies.c.code == normalized)
            ).scalar_one_or_none()
        if rate is None:
            raise UnknownRateError(f"Unsupported currency: {normalized}")
        return coerce_amount(rate)

    def transactions(self) -> Sequence[Transaction]:
        stmt = select(
            transactions.c.id,
            transactions.c.account_id,
            transactions.c.payee_id,
            transactions.c.date,
            transactions.c.amount,
            transactions.c.type,
            transactions.c.status,
        ).order_by(transactions.c.id.asc())
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [
            Transaction(
                id=row["id"],
                account_id=row["account_id"],
                payee_id=row["payee_id"],
                date=_coerce_date(row["date"]),
                amount=coerce_amount(row["amount"]),
                type=row["type"],
                status=row["status"] or STATUS_NONE,
            )
            for row in rows
        ]

    def split_entries_by_transaction(self) -> Mapping[int, Sequence[SplitEntry]]:
        stmt = select(
            split_transactions.c.transaction_id,
            split_transactions.c.amount,
        ).order_by(split_transactions.c.id.asc())
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return group_split_entries(
            [
                SplitEntry(
                    transaction_id=row["transaction_id"],
                    amount=coerce_amount(row["amount"]),
                )
                for row in rows
            ]
        )

    def payee_name(self, payee_id: int) -> Optional[str]:
        with self.engine.connect() as conn:
            return conn.execute(
                select(payees.c.name).where(payees.c.id == payee_id)
            ).scalar_one_or_none()


def _coerce_date(value: date | datetime | str) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    return datetime.fromisoformat(value)
