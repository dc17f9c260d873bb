from datetime import date, datetime, time

import pytest

from checkmate.core.errors import InvalidDate
from checkmate.core.time_utils import (
    add_days,
    add_years,
    as_local_naive,
    day_of_week,
    end_of_week,
    format_period_key,
    hhmm_to_time,
    is_within,
    parse_date,
    start_of_week,
    time_to_hhmm,
    truncate_to_day,
)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(date(2024, 6, 2)) == 0   # Sunday
    assert day_of_week(date(2024, 6, 3)) == 1   # Monday
    assert day_of_week(date(2024, 6, 1)) == 6   # Saturday


def test_is_within_is_inclusive():
    start, end = date(2024, 6, 1), date(2024, 6, 3)
    assert is_within(start, start, end)
    assert is_within(end, start, end)
    assert not is_within(date(2024, 5, 31), start, end)
    assert not is_within(date(2024, 6, 4), start, end)


def test_week_bounds_sunday_to_saturday():
    wed = date(2024, 6, 5)
    assert start_of_week(wed) == date(2024, 6, 2)
    assert end_of_week(wed) == date(2024, 6, 8)
    assert start_of_week(date(2024, 6, 2)) == date(2024, 6, 2)
    assert end_of_week(date(2024, 6, 8)) == date(2024, 6, 8)


def test_add_days_and_years():
    assert add_days(date(2024, 2, 28), 1) == date(2024, 2, 29)
    assert add_years(date(2024, 6, 1), 1) == date(2025, 6, 1)
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)


def test_period_keys():
    assert format_period_key(date(2024, 6, 1), "day") == "2024-06-01"
    # Sunday and Saturday of the same week share a key
    assert format_period_key(date(2024, 6, 2), "week") == "2024-W23"
    assert format_period_key(date(2024, 6, 8), "week") == "2024-W23"
    assert format_period_key(date(2024, 6, 9), "week") == "2024-W24"
    # week spanning new year takes the year of its Monday
    assert format_period_key(date(2024, 12, 29), "week") == "2025-W01"
    with pytest.raises(ValueError):
        format_period_key(date(2024, 6, 1), "month")


def test_invalid_calendar_input():
    with pytest.raises(InvalidDate):
        parse_date("2024-13-01")
    with pytest.raises(InvalidDate):
        parse_date(20240601)
    with pytest.raises(InvalidDate):
        day_of_week("2024-06-01")
    with pytest.raises(InvalidDate):
        day_of_week(datetime(2024, 6, 1, 12, 0))
    assert parse_date(" 2024-06-01 ") == date(2024, 6, 1)


def test_truncate_to_day():
    assert truncate_to_day(datetime(2024, 6, 1, 23, 59)) == date(2024, 6, 1)
    assert truncate_to_day(date(2024, 6, 1)) == date(2024, 6, 1)


def test_reset_time_parsing():
    assert hhmm_to_time("18:00") == time(18, 0)
    assert hhmm_to_time("6:30 PM") == time(18, 30)
    assert hhmm_to_time("  ") is None
    assert time_to_hhmm(time(4, 5)) == "04:05"
    with pytest.raises(ValueError):
        hhmm_to_time("25:99")


def test_naive_now_passes_through():
    dt = datetime(2024, 6, 2, 19, 0)
    assert as_local_naive(dt, "UTC") == dt
