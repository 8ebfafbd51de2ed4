"""
Date helpers.

All timestamps are stored as naive UTC datetimes.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(moment) -> datetime:
    """Midnight at the start of a date or datetime."""
    day = moment.date() if isinstance(moment, datetime) else moment
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    """Last instant of ``day`` so date-only upper bounds include the whole day."""
    return datetime.combine(day, time.max)


def period_starts(now: datetime) -> Tuple[datetime, datetime, datetime]:
    """
    Return (today, week_start, month_start) for ``now``.

    Weeks start on Sunday.
    """
    today = start_of_day(now)
    # weekday() is 0 for Monday, 6 for Sunday
    days_since_sunday = (today.weekday() + 1) % 7
    week_start = today - timedelta(days=days_since_sunday)
    month_start = today.replace(day=1)
    return today, week_start, month_start


def months_ago(now: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` months before ``now``, clamped to month length."""
    year = now.year
    month = now.month - months
    while month <= 0:
        month += 12
        year -= 1
    # Clamp the day for shorter months
    day = now.day
    while True:
        try:
            return now.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


def month_key(moment: datetime) -> str:
    return f"{moment.year}-{moment.month:02d}"


def minutes_between(start: datetime, end: datetime) -> int:
    return round((end - start).total_seconds() / 60)
