"""
Calendar arithmetic for usage windows.

All day keys are local-time `YYYY-MM-DD` strings, which compare correctly
as plain strings because every field is zero-padded.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Union


class Period(Enum):
    """Trailing windows the usage view can display."""
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"


PERIODS = [Period.WEEK, Period.MONTH, Period.QUARTER]
DEFAULT_PERIOD = Period.MONTH

_PERIOD_DAYS = {
    Period.WEEK: 7,
    Period.MONTH: 30,
    Period.QUARTER: 90,
}


def local_midnight(instant: datetime) -> datetime:
    """Return the start of the local calendar day containing `instant`.

    Aware datetimes are converted to local time first; the result is always
    a naive local wall-clock datetime.
    """
    if instant.tzinfo is not None:
        instant = instant.astimezone().replace(tzinfo=None)
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def add_days(instant: datetime, days: int) -> datetime:
    """Move `instant` by whole calendar days.

    Arithmetic happens on naive wall-clock time, so midnight stays midnight
    across daylight saving transitions.
    """
    return instant + timedelta(days=days)


def period_days(period: Union[Period, str]) -> int:
    """Number of days covered by a window tag."""
    return _PERIOD_DAYS[Period(period)]


def scan_floor_days() -> int:
    """Lookback for the background scan: the widest supported window."""
    return max(period_days(p) for p in PERIODS)


def format_date_key(instant: datetime) -> str:
    return instant.strftime("%Y-%m-%d")


def window_start(days: int, now: Optional[datetime] = None) -> datetime:
    """Local midnight of the first day of a `days`-long window ending today."""
    today = local_midnight(now or datetime.now())
    return add_days(today, -(days - 1))


def cutoff_key(days: int, now: Optional[datetime] = None) -> str:
    """Inclusive lower-bound day key for a `days`-long window ending today."""
    return format_date_key(window_start(days, now))
