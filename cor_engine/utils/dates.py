"""
Date helpers shared by the status, scheduling and cycle calculations.

All engine arithmetic is done on timezone-aware UTC datetimes. SQLite hands
DateTime(timezone=True) columns back as naive values, so anything read from
the store goes through ensure_utc() before it is compared.
"""
import calendar
from datetime import date, datetime, time, timezone
from typing import Optional, Union

DateLike = Union[datetime, date]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[DateLike]) -> Optional[datetime]:
    """Return value as an aware UTC datetime (naive values are taken as UTC)."""
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_years(value: datetime, years: int) -> datetime:
    """Same month/day `years` later; Feb 29 rolls forward to Mar 1."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, month=3, day=1)


def add_months(value: datetime, months: int) -> datetime:
    """Same day `months` later, clamped to the last day of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
