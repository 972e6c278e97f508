"""UTC time helpers.

``datetime.utcnow()`` is deprecated since Python 3.12; these wrappers give the
same naive UTC values without the warning, plus the calendar-day helpers the
profile history series are built on.
"""

from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive (tzinfo=None) datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utctoday() -> date:
    """Return the current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def trailing_days(count: int, end: date) -> list[date]:
    """``count`` consecutive dates, oldest first, the last one being ``end``."""
    return [end - timedelta(days=offset) for offset in range(count - 1, -1, -1)]
