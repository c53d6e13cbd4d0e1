"""
Unit tests for calendar period helpers.
"""

from datetime import datetime, timezone, timedelta

import pytest
from backend.app.utils.periods import (
    Period, get_start_of_period, get_end_of_period, get_period_range, to_local_naive
)

# Friday
REFERENCE = datetime(2024, 3, 15, 14, 30, 12, 500)


def test_day():
    assert get_start_of_period("day", REFERENCE) == datetime(2024, 3, 15)
    assert get_end_of_period("day", REFERENCE) == datetime(2024, 3, 15, 23, 59, 59, 999999)


def test_week_runs_sunday_to_saturday():
    assert get_start_of_period(Period.WEEK, REFERENCE) == datetime(2024, 3, 10)
    assert get_end_of_period(Period.WEEK, REFERENCE) == datetime(2024, 3, 16, 23, 59, 59, 999999)


def test_week_on_a_sunday_starts_that_day():
    sunday = datetime(2024, 3, 10, 9)
    assert get_start_of_period("week", sunday) == datetime(2024, 3, 10)
    assert get_end_of_period("week", sunday) == datetime(2024, 3, 16, 23, 59, 59, 999999)


def test_month():
    assert get_start_of_period("month", REFERENCE) == datetime(2024, 3, 1)
    assert get_end_of_period("month", REFERENCE) == datetime(2024, 3, 31, 23, 59, 59, 999999)


def test_month_end_in_leap_february():
    assert get_end_of_period("month", datetime(2024, 2, 10)) == datetime(2024, 2, 29, 23, 59, 59, 999999)


@pytest.mark.parametrize("period,following", [
    ("day", datetime(2024, 3, 16)),
    ("week", datetime(2024, 3, 17)),
    ("month", datetime(2024, 4, 1)),
    ("year", datetime(2025, 1, 1)),
])
def test_end_is_one_microsecond_before_next_period(period, following):
    assert get_end_of_period(period, REFERENCE) + timedelta(microseconds=1) == following
    assert get_start_of_period(period, following) == following


def test_year():
    start, end = get_period_range("year", REFERENCE)
    assert start == datetime(2024, 1, 1)
    assert end == datetime(2024, 12, 31, 23, 59, 59, 999999)


def test_unknown_period_returns_reference():
    assert get_start_of_period("fortnight", REFERENCE) == REFERENCE
    assert get_end_of_period("fortnight", REFERENCE) == REFERENCE


def test_defaults_to_now():
    start = get_start_of_period("day")
    assert start.date() == datetime.now().date()
    assert start.hour == 0


def test_to_local_naive():
    naive = datetime(2024, 3, 15, 8)
    assert to_local_naive(naive) is naive

    aware = datetime(2024, 3, 15, 8, tzinfo=timezone(timedelta(hours=2)))
    converted = to_local_naive(aware)
    assert converted.tzinfo is None
    assert converted == aware.astimezone().replace(tzinfo=None)
