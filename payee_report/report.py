from __future__ import annotations

from datetime import date
from typing import List, Optional

from payee_report.currency_rates import resolve_account_rates
from payee_report.data_sources import ReportDataSource
from payee_report.date_ranges import DateRange
from payee_report.logging_setup import get_logger
from payee_report.payee_aggregator import aggregate_payee_stats
from payee_report.payee_ranking import ReportRow, normalize_sort_key, rank_rows
from payee_report.presentation import (
    ChartSink,
    PayeeReportView,
    ReportTotals,
    ValuePair,
    build_report_view,
    chart_values_for,
)

logger = get_logger(__name__)

UNKNOWN_PAYEE_NAME = "Unknown payee"
DEFAULT_TITLE = "Payee Report"


class PayeeExpensesReport:
    """Income and expense per payee over a date window, in base currency.

    ``refresh`` recomputes everything from the data source in one pass and
    swaps the results in at the end. ``rows``, ``totals`` and
    ``chart_values`` only read the last refreshed state.
    """

    def __init__(self, data_source: ReportDataSource, title: str = DEFAULT_TITLE) -> None:
        self.data_source = data_source
        self.title = title
        self.sort_key = normalize_sort_key(None)
        self.date_range: Optional[DateRange] = None
        self.fallback_accounts: frozenset[int] = frozenset()
        self.unresolved_accounts: frozenset[int] = frozenset()
        self._rows: List[ReportRow] = []
        self._totals = ReportTotals()

    def refresh(
        self,
        date_range: DateRange,
        ignore_future: bool = False,
        today: date | None = None,
    ) -> None:
        account_rates = resolve_account_rates(
            self.data_source.accounts(),
            self.data_source.currency_rate,
        )
        result = aggregate_payee_stats(
            self.data_source.transactions(),
            self.data_source.split_entries_by_transaction(),
            account_rates,
            date_range,
            ignore_future=ignore_future,
            today=today,
        )

        rows = [
            ReportRow(
                payee_id=payee_id,
                name=self._payee_name(payee_id),
                income=stat.income,
                expense=stat.expense,
            )
            for payee_id, stat in result.stats.items()
        ]
        totals = ReportTotals(
            positive=result.positive_total,
            negative=result.negative_total,
        )
        logger.debug(
            "Refreshed %s: %d payees, totals %s / %s",
            self.title,
            len(rows),
            totals.positive,
            totals.negative,
        )

        self.date_range = date_range
        self.unresolved_accounts = account_rates.unresolved
        self.fallback_accounts = result.fallback_accounts
        self._rows = rows
        self._totals = totals

    def rows(self, sort_key: str | int | None = None) -> List[ReportRow]:
        if sort_key is not None:
            self.sort_key = normalize_sort_key(sort_key)
        return rank_rows(self._rows, self.sort_key)

    def totals(self) -> ReportTotals:
        return self._totals

    def chart_values(self) -> List[ValuePair]:
        return chart_values_for(self._rows)

    def render(
        self,
        sort_key: str | int | None = None,
        chart_sink: ChartSink | None = None,
    ) -> PayeeReportView:
        if self.date_range is None:
            raise RuntimeError("Report must be refreshed before rendering.")
        rows = self.rows(sort_key)
        return build_report_view(
            self.title,
            self.date_range,
            rows,
            self._totals,
            self.chart_values(),
            self.sort_key,
            chart_sink=chart_sink,
        )

    def _payee_name(self, payee_id: int | None) -> str:
        if payee_id is None:
            return UNKNOWN_PAYEE_NAME
        try:
            name = self.data_source.payee_name(payee_id)
        except LookupError:
            name = None
        if not name:
            logger.info("Payee %s not found; using placeholder name", payee_id)
            return UNKNOWN_PAYEE_NAME
        return name
