import os
from datetime import date

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import create_engine

from payee_report.data_sources import ReportDataSource
from payee_report.date_ranges import DateRange
from payee_report.logging_setup import configure_logging, get_logger
from payee_report.payee_aggregator import ReportDataError
from payee_report.presentation import PayeeReportView
from payee_report.report import DEFAULT_TITLE, PayeeExpensesReport
from payee_report.store import SqlReportDataSource, metadata

configure_logging()
logger = get_logger(__name__)


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

database_url = os.getenv("DATABASE_URL", "sqlite:///./payee_report.db")
connect_args = {}
if database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(database_url, connect_args=connect_args)

IGNORE_FUTURE_TRANSACTIONS = env_flag("IGNORE_FUTURE_TRANSACTIONS")
REPORT_TITLE = os.getenv("REPORT_TITLE", DEFAULT_TITLE)


@app.on_event("startup")
def init_db() -> None:
    metadata.create_all(engine)


def get_data_source() -> ReportDataSource:
    return SqlReportDataSource(engine)


def resolve_date_range(
    start_date: date | None,
    end_date: date | None,
    timeframe: str | None,
    today: date,
) -> DateRange:
    if start_date is not None or end_date is not None:
        return DateRange(
            start_date or today.replace(day=1),
            end_date or today,
        )
    if timeframe:
        return DateRange.for_timeframe(timeframe, today)
    return DateRange(today.replace(day=1), today)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/reports/payees", response_model=PayeeReportView)
def payee_report(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    timeframe: str | None = Query(None),
    sort: str | None = Query(None),
    ignore_future: bool | None = Query(None),
    data_source: ReportDataSource = Depends(get_data_source),
) -> PayeeReportView:
    today = date.today()
    try:
        date_range = resolve_date_range(start_date, end_date, timeframe, today)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if ignore_future is None:
        ignore_future = IGNORE_FUTURE_TRANSACTIONS

    report = PayeeExpensesReport(data_source, title=REPORT_TITLE)
    try:
        report.refresh(date_range, ignore_future=ignore_future, today=today)
    except ReportDataError as exc:
        logger.error("Payee report aborted: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    if report.fallback_accounts:
        logger.warning(
            "Payee report used fallback rates for accounts %s",
            sorted(report.fallback_accounts),
        )
    return report.render(sort)
