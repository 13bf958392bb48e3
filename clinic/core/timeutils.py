# clinic/core/timeutils.py
"""
Date/time helpers shared by availability and booking.

Convention: every timestamp stored or compared by the application is a
*naive* datetime holding clinic wall-clock time. The clinic zone is
``settings.LOCAL_TIMEZONE`` when set, otherwise the host's local time.

- Values received with a UTC offset are converted to clinic time and the
  tzinfo is dropped.
- Naive values are assumed to already be clinic time.
- Calendar dates are handled as ``date`` objects, never as shifted instants,
  so the day of week of a date cannot drift across DST changes.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from clinic.core.config import settings

HHMM = "%H:%M"
END_OF_DAY = time(23, 59, 59)


def _clinic_zone() -> Optional[ZoneInfo]:
    if not settings.LOCAL_TIMEZONE:
        return None
    return ZoneInfo(settings.LOCAL_TIMEZONE)


def local_now() -> datetime:
    """Current clinic wall-clock time (naive)."""
    tz = _clinic_zone()
    if tz is None:
        return datetime.now().replace(microsecond=0)
    return datetime.now(tz).replace(tzinfo=None, microsecond=0)


def to_local_naive(value: datetime) -> datetime:
    """
    Normalise a datetime to the stored convention.
    Aware values are converted to clinic time; naive values pass through.
    """
    if value.tzinfo is None:
        return value
    tz = _clinic_zone()
    if tz is None:
        return value.astimezone().replace(tzinfo=None)
    return value.astimezone(tz).replace(tzinfo=None)


def parse_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date. Raises ValueError."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def day_of_week(day: date) -> int:
    """0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def at_time(day: date, tod: time) -> datetime:
    return datetime.combine(day, tod.replace(tzinfo=None))


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open ``[day 00:00, next day 00:00)``."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def all_day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Stored bounds of an all-day block: 00:00:00 .. 23:59:59 of ``day``."""
    return datetime.combine(day, time.min), datetime.combine(day, END_OF_DAY)


def format_hhmm(value: datetime | time) -> str:
    return value.strftime(HHMM)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap."""
    return a_start < b_end and a_end > b_start
