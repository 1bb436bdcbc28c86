from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Optional, Sequence

from pydantic import BaseModel

from payee_report.currency_rates import ZERO
from payee_report.date_ranges import DateRange, format_bound
from payee_report.payee_ranking import ReportRow

TABLE_COLUMNS = ["Payee", "Incomes", "Expenses", "Difference"]
TOTAL_LABEL = "Total:"


class ValuePair(BaseModel):
    label: str
    amount: Decimal


class ReportRowView(BaseModel):
    payee_id: Optional[int]
    name: str
    income: Decimal
    expense: Decimal
    difference: Decimal


class ReportFooter(BaseModel):
    label: str = TOTAL_LABEL
    positive_total: Decimal
    negative_total: Decimal
    difference: Decimal


class PayeeReportView(BaseModel):
    title: str
    date_caption: str
    start_date: str
    end_date: str
    chart_ref: Optional[str] = None
    columns: list[str]
    rows: list[ReportRowView]
    footer: ReportFooter
    chart_values: list[ValuePair]
    sort_key: str


@dataclass(frozen=True)
class ReportTotals:
    positive: Decimal = ZERO
    negative: Decimal = ZERO

    @property
    def difference(self) -> Decimal:
        return self.positive + self.negative


# Receives the chart data and the report title, returns an image reference.
ChartSink = Callable[[Sequence[ValuePair], str], Optional[str]]


def chart_values_for(rows: Iterable[ReportRow]) -> list[ValuePair]:
    return [
        ValuePair(label=row.name, amount=row.difference)
        for row in rows
        if row.difference < ZERO
    ]


def format_date_caption(date_range: DateRange) -> str:
    return "From {} to {}".format(
        format_bound(date_range.start, date_range.with_time),
        format_bound(date_range.end, date_range.with_time),
    )


def build_report_view(
    title: str,
    date_range: DateRange,
    rows: Sequence[ReportRow],
    totals: ReportTotals,
    chart_values: Sequence[ValuePair],
    sort_key: str,
    chart_sink: ChartSink | None = None,
) -> PayeeReportView:
    chart_ref = chart_sink(list(chart_values), title) if chart_sink else None
    return PayeeReportView(
        title=title,
        date_caption=format_date_caption(date_range),
        start_date=format_bound(date_range.start, date_range.with_time),
        end_date=format_bound(date_range.end, date_range.with_time),
        chart_ref=chart_ref,
        columns=list(TABLE_COLUMNS),
        rows=[
            ReportRowView(
                payee_id=row.payee_id,
                name=row.name,
                income=row.income,
                expense=row.expense,
                difference=row.difference,
            )
            for row in rows
        ],
        footer=ReportFooter(
            positive_total=totals.positive,
            negative_total=totals.negative,
            difference=totals.difference,
        ),
        chart_values=list(chart_values),
        sort_key=sort_key,
    )
