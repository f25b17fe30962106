"""
Tests for date helpers.
"""
from datetime import date, datetime, timedelta, timezone

from cor_engine.utils.dates import add_months, add_years, ensure_utc


def test_ensure_utc():
    naive = datetime(2026, 1, 1, 10, 0)
    eastern = datetime(2026, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-5)))

    assert ensure_utc(None) is None
    assert ensure_utc(naive) == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert ensure_utc(eastern) == datetime(2026, 1, 1, 15, 0, tzinfo=timezone.utc)
    assert ensure_utc(date(2026, 1, 1)) == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_add_years_handles_leap_day():
    assert add_years(datetime(2025, 7, 4), 3) == datetime(2028, 7, 4)
    assert add_years(datetime(2024, 2, 29), 3) == datetime(2027, 3, 1)
    assert add_years(datetime(2024, 2, 29), 4) == datetime(2028, 2, 29)


def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2026, 1, 15), 6) == datetime(2026, 7, 15)
    assert add_months(datetime(2026, 8, 31), 6) == datetime(2027, 2, 28)
    assert add_months(datetime(2026, 12, 1), 1) == datetime(2027, 1, 1)
