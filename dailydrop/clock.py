"""Time helpers for the journaling day.

The journaling day is the calendar date at a fixed offset of UTC-7. It does
not follow the user's local timezone or daylight saving time.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional

# Fixed journaling offset (UTC-7)
JOURNALING_UTC_OFFSET = timedelta(hours=-7)

# Day zero for cycling through the question pool
CYCLE_EPOCH = date(1970, 1, 1)


def utc_now() -> datetime:
    """Return naive UTC now, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(dt: datetime) -> datetime:
    """Normalize a datetime to naive UTC.

    - Naive datetimes are assumed to be UTC already
    - Aware datetimes are converted to UTC and stripped of tzinfo
    """
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def journaling_date(dt: Optional[datetime] = None) -> date:
    """Return the UTC-7 calendar date of an instant (defaults to now)."""
    if dt is None:
        dt = utc_now()
    return (to_utc_naive(dt) + JOURNALING_UTC_OFFSET).date()


def day_number(dt: Optional[datetime] = None) -> int:
    """Days elapsed between CYCLE_EPOCH and the journaling date of dt."""
    return journaling_date(dt).toordinal() - CYCLE_EPOCH.toordinal()
