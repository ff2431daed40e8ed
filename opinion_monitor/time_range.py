"""Symbolic time-range tokens -> absolute windows and display granularity.

Every time-windowed computation goes through this module so that "current"
and "previous period" comparisons always share identical boundaries.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from .config import LOCAL_TZ
from .errors import InvalidTimeRange

HOUR = "hour"
DAY = "day"
WEEK = "week"
MONTH = "month"
GRANULARITIES = (HOUR, DAY, WEEK, MONTH)

CALENDAR_TOKENS = (
    "today",
    "yesterday",
    "thisWeek",
    "lastWeek",
    "thisMonth",
    "lastMonth",
    "thisQuarter",
    "lastQuarter",
    "halfYear",
    "lastHalfYear",
    "thisYear",
    "lastYear",
    "all",
)

DURATION_TOKENS: Dict[str, timedelta] = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "12h": timedelta(hours=12),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "180d": timedelta(days=180),
    "365d": timedelta(days=365),
}

TIME_RANGE_GRANULARITY: Dict[str, str] = {
    "1h": HOUR,
    "6h": HOUR,
    "12h": HOUR,
    "24h": HOUR,
    "7d": DAY,
    "30d": WEEK,
    "90d": WEEK,
    "180d": MONTH,
    "365d": MONTH,
    "today": HOUR,
    "yesterday": HOUR,
    "thisWeek": DAY,
    "lastWeek": DAY,
    "thisMonth": DAY,
    "lastMonth": DAY,
    "thisQuarter": WEEK,
    "lastQuarter": WEEK,
    "halfYear": MONTH,
    "lastHalfYear": MONTH,
    "thisYear": MONTH,
    "lastYear": MONTH,
    "all": MONTH,
}

ONE_MS = timedelta(milliseconds=1)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts <= self.end


def is_valid(token: object) -> bool:
    return isinstance(token, str) and token in TIME_RANGE_GRANULARITY


def localize(ts: datetime) -> datetime:
    """Interpret naive timestamps as local time and convert aware ones to it."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=LOCAL_TZ)
    return ts.astimezone(LOCAL_TZ)


def local_now() -> datetime:
    return datetime.now(tz=LOCAL_TZ)


def _midnight(ts: datetime) -> datetime:
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def _shift_months(ts: datetime, months: int) -> datetime:
    index = ts.year * 12 + (ts.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(ts.day, calendar.monthrange(year, month)[1])
    return ts.replace(year=year, month=month, day=day)


def _month_start(ts: datetime) -> datetime:
    return _midnight(ts).replace(day=1)


def _quarter_start(ts: datetime) -> datetime:
    month = ((ts.month - 1) // 3) * 3 + 1
    return _midnight(ts).replace(month=month, day=1)


def resolve(token: str, *, now: Optional[datetime] = None) -> TimeWindow:
    """Map a time-range token onto an absolute window in local time."""
    if not is_valid(token):
        raise InvalidTimeRange(token)
    current = localize(now) if now is not None else local_now()
    today = _midnight(current)

    if token in DURATION_TOKENS:
        return TimeWindow(current - DURATION_TOKENS[token], current)
    if token == "today":
        return TimeWindow(today, today + timedelta(days=1) - ONE_MS)
    if token == "yesterday":
        return TimeWindow(today - timedelta(days=1), today - ONE_MS)
    if token == "thisWeek":
        return TimeWindow(today - timedelta(days=today.weekday()), current)
    if token == "lastWeek":
        monday = today - timedelta(days=today.weekday())
        return TimeWindow(monday - timedelta(days=7), monday - ONE_MS)
    if token == "thisMonth":
        return TimeWindow(_month_start(current), current)
    if token == "lastMonth":
        first = _month_start(current)
        return TimeWindow(_shift_months(first, -1), first - ONE_MS)
    if token == "thisQuarter":
        return TimeWindow(_quarter_start(current), current)
    if token == "lastQuarter":
        first = _quarter_start(current)
        return TimeWindow(_shift_months(first, -3), first - ONE_MS)
    if token == "halfYear":
        return TimeWindow(_shift_months(today, -6), current)
    if token == "lastHalfYear":
        end = _shift_months(today, -6) + timedelta(days=1) - ONE_MS
        return TimeWindow(_shift_months(today, -12), end)
    if token == "thisYear":
        return TimeWindow(today.replace(month=1, day=1), current)
    if token == "lastYear":
        first = today.replace(month=1, day=1)
        return TimeWindow(first.replace(year=first.year - 1), first - ONE_MS)
    # all
    return TimeWindow(EPOCH.astimezone(LOCAL_TZ), current)


def granularity(token: str) -> str:
    if not is_valid(token):
        raise InvalidTimeRange(token)
    return TIME_RANGE_GRANULARITY[token]


def previous(token: str, *, now: Optional[datetime] = None) -> TimeWindow:
    """Equally long window immediately preceding ``resolve(token)``."""
    current = resolve(token, now=now)
    return TimeWindow(current.start - current.duration, current.start - ONE_MS)


def change_rate(current: float, prior: float) -> float:
    """Percentage change; 100 when growing from nothing."""
    if prior == 0:
        return 100.0 if current > 0 else 0.0
    return (current - prior) / prior * 100.0


def truncate(ts: datetime, unit: str) -> datetime:
    """Floor ``ts`` to the start of its bucket, like SQL DATE_TRUNC."""
    local = localize(ts)
    if unit == HOUR:
        return local.replace(minute=0, second=0, microsecond=0)
    if unit == DAY:
        return _midnight(local)
    if unit == WEEK:
        return _midnight(local) - timedelta(days=local.weekday())
    if unit == MONTH:
        return _month_start(local)
    raise ValueError(f"unknown granularity: {unit!r}")


def format_label(ts: datetime, unit: str) -> str:
    local = localize(ts)
    if unit == HOUR:
        return f"{local.month}月{local.day}日 {local.hour}时"
    if unit == DAY:
        return f"{local.month}月{local.day}日"
    if unit == WEEK:
        return f"第{math.ceil(local.day / 7)}周"
    if unit == MONTH:
        return f"{local.month}月"
    return local.isoformat()


__all__ = [
    "HOUR",
    "DAY",
    "WEEK",
    "MONTH",
    "GRANULARITIES",
    "CALENDAR_TOKENS",
    "DURATION_TOKENS",
    "TIME_RANGE_GRANULARITY",
    "TimeWindow",
    "is_valid",
    "localize",
    "local_now",
    "resolve",
    "granularity",
    "previous",
    "change_rate",
    "truncate",
    "format_label",
]
