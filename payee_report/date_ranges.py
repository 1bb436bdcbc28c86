from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

TIMEFRAMES = {"1W", "30D", "1M", "3M", "6M", "YTD", "1Y", "2Y", "CM", "LM", "ALL"}
EARLIEST_DATE = date(1900, 1, 1)


@dataclass(frozen=True)
class DateRange:
    """Inclusive reporting window.

    With ``with_time`` the bounds and transaction timestamps are compared as
    full datetimes; otherwise only calendar dates are compared.
    """

    start: date | datetime
    end: date | datetime
    with_time: bool = False

    def __post_init__(self) -> None:
        if _as_datetime(self.start, time.min) > _as_datetime(self.end, time.max):
            raise ValueError("start_date must be on or before end_date.")

    def contains(self, value: date | datetime) -> bool:
        if self.with_time:
            moment = _as_datetime(value, time.min)
            return (
                _as_datetime(self.start, time.min)
                <= moment
                <= _as_datetime(self.end, time.max)
            )
        return _as_date(self.start) <= _as_date(value) <= _as_date(self.end)

    @property
    def start_date(self) -> date:
        return _as_date(self.start)

    @property
    def end_date(self) -> date:
        return _as_date(self.end)

    @classmethod
    def for_timeframe(cls, timeframe: str, today: date | None = None) -> "DateRange":
        end_date = today or date.today()
        normalized = normalize_timeframe(timeframe)
        if normalized == "LM":
            previous_month = shift_month_keep_day(end_date.replace(day=1), -1)
            return cls(previous_month, month_end(previous_month))
        return cls(timeframe_start(end_date, normalized), end_date)


def normalize_timeframe(value: str) -> str:
    normalized = value.strip().upper()
    if normalized not in TIMEFRAMES:
        raise ValueError("Invalid timeframe.")
    return normalized


def timeframe_start(end_date: date, timeframe: str) -> date:
    if timeframe == "1W":
        return end_date - timedelta(days=6)
    if timeframe == "30D":
        return end_date - timedelta(days=29)
    if timeframe == "1M":
        return shift_month_keep_day(end_date, -1)
    if timeframe == "3M":
        return shift_month_keep_day(end_date, -3)
    if timeframe == "6M":
        return shift_month_keep_day(end_date, -6)
    if timeframe == "YTD":
        return date(end_date.year, 1, 1)
    if timeframe == "1Y":
        return shift_month_keep_day(end_date, -12)
    if timeframe == "2Y":
        return shift_month_keep_day(end_date, -24)
    if timeframe == "CM":
        return end_date.replace(day=1)
    if timeframe == "ALL":
        return EARLIEST_DATE
    raise ValueError("Invalid timeframe.")


def shift_month_keep_day(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    day = min(value.day, last_day)
    return date(year, month, day)


def month_end(value: date) -> date:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def format_bound(value: date | datetime, with_time: bool) -> str:
    if with_time and isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    return _as_date(value).isoformat()


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _as_datetime(value: date | datetime, default_time: time) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, default_time)
