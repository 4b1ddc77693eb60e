"""Date manipulation utilities"""

import math
from datetime import date, datetime, timedelta
from typing import Callable

Clock = Callable[[], datetime]

SECONDS_PER_DAY = 24 * 60 * 60


def system_clock() -> datetime:
    """Default clock: local wall time"""
    return datetime.now()


def truncate_to_midnight(value: date | datetime) -> datetime:
    """Drop the time-of-day component so comparisons are whole-day"""
    if isinstance(value, datetime):
        return value.replace(hour=0, minute=0, second=0, microsecond=0)
    return datetime(value.year, value.month, value.day)


def as_datetime(value: date | datetime) -> datetime:
    """Promote a plain date to midnight of that day, leave datetimes untouched"""
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def days_late(due: date | datetime, today: date | datetime) -> int:
    """
    Whole days elapsed since the due date, rounded up.

    `today` is truncated to midnight. A due datetime keeps its time part,
    so any fraction of a day past it counts as a full day.
    """
    delta = truncate_to_midnight(today) - as_datetime(due)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def add_days(from_date: date, days: int) -> date:
    """Add calendar days to a date"""
    return from_date + timedelta(days=days)
