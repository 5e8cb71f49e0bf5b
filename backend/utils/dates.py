"""Calendar-month arithmetic on timezone-aware datetimes."""

import calendar
from datetime import datetime, timezone


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def months_between(start: datetime, end: datetime) -> int:
    """Count the whole calendar months elapsed from start to end.

    A month only counts once the same day-of-month and time has been
    reached, so Jan 31 -> Feb 28 is 0 months and Jan 15 -> Apr 15 is 3.
    Negative when end is before start. Naive datetimes are taken as UTC.
    """
    start = _as_utc(start)
    end = _as_utc(end)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    start_key = (start.day, start.time())
    end_key = (end.day, end.time())
    if months > 0 and end_key < start_key:
        months -= 1
    elif months < 0 and end_key > start_key:
        months += 1
    return months


def add_months(dt: datetime, months: int) -> datetime:
    """Shift dt by a number of calendar months, clamping to the month's last day."""
    total = dt.year * 12 + (dt.month - 1) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)
