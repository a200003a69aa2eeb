"""
Time window helpers for the analytics engine.

All timestamps in the database are naive UTC, so every function here works on
naive UTC datetimes as well.
"""
import calendar
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional, Tuple


class StatisticsPeriod(str, Enum):
    """Natural-language periods accepted by the flexible statistics query"""
    LAST_DAY = "last_day"
    LAST_WEEK = "last_week"
    LAST_MONTH = "last_month"
    LAST_YEAR = "last_year"
    CUSTOM = "custom"


class AnalyticsPeriod(str, Enum):
    """Coarse periods accepted by the dashboard summary endpoints"""
    SEVEN_DAYS = "7d"
    ONE_MONTH = "1m"
    ONE_YEAR = "1y"


def utcnow() -> datetime:
    """Current time as naive UTC, matching what the models store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def shift_months(value: datetime, months: int) -> datetime:
    """
    Move a datetime by whole calendar months, clamping the day of month
    (e.g. March 31 minus one month is February 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def resolve_statistics_period(
    period: StatisticsPeriod,
    days: Optional[int] = None,
    now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """
    Resolve a statistics period to a [start, end] window ending now.

    A custom period with a missing or non-positive day count falls back to
    the last-month window.
    """
    end = now or utcnow()

    if period == StatisticsPeriod.LAST_DAY:
        start = end - timedelta(days=1)
    elif period == StatisticsPeriod.LAST_WEEK:
        start = end - timedelta(days=7)
    elif period == StatisticsPeriod.LAST_YEAR:
        start = shift_months(end, -12)
    elif period == StatisticsPeriod.CUSTOM and days and days > 0:
        start = end - timedelta(days=days)
    else:
        start = shift_months(end, -1)

    return start, end


def resolve_analytics_period(
    period: AnalyticsPeriod,
    now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """Resolve a dashboard period (7d/1m/1y) to a [start, end] window ending now."""
    end = now or utcnow()

    if period == AnalyticsPeriod.SEVEN_DAYS:
        start = end - timedelta(days=7)
    elif period == AnalyticsPeriod.ONE_YEAR:
        start = shift_months(end, -12)
    else:
        start = shift_months(end, -1)

    return start, end


def days_in_window(start: datetime, end: datetime) -> List[date]:
    """Every calendar day touched by the window, inclusive on both ends."""
    days = []
    current = start.date()
    last = end.date()
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def week_start(value: datetime) -> date:
    """Monday of the week containing the given timestamp."""
    day = value.date()
    return day - timedelta(days=day.weekday())


def month_key(value: datetime) -> str:
    return value.strftime("%Y-%m")
