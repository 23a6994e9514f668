"""
Test due date helpers
"""

from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from app.core.errors import InvalidDateError
from app.services.dates import (
    DateShift,
    next_day,
    next_monday,
    plus_two_days,
    shift_due_date,
    start_of_day,
    today,
)


def test_start_of_day_accepts_dates_datetimes_and_strings():
    assert start_of_day(date(2024, 1, 1)) == date(2024, 1, 1)
    assert start_of_day(datetime(2024, 1, 1, 23, 59, 59)) == date(2024, 1, 1)
    assert start_of_day("2024-01-01") == date(2024, 1, 1)
    assert start_of_day("2024-01-01T15:30:00Z") == date(2024, 1, 1)


def test_start_of_day_uses_utc_for_aware_datetimes():
    # 2024-01-01 20:00 at UTC-5 is already 2024-01-02 in UTC
    eastern = timezone(timedelta(hours=-5))
    assert start_of_day(datetime(2024, 1, 1, 20, 0, tzinfo=eastern)) == date(2024, 1, 2)
    assert start_of_day("2024-01-02T03:00:00+09:00") == date(2024, 1, 1)


def test_start_of_day_is_idempotent():
    for value in (datetime(2024, 3, 10, 12, 0, tzinfo=UTC), "2024-03-10T23:00:00-02:00", date(2024, 2, 29)):
        once = start_of_day(value)
        assert start_of_day(once) == once


@pytest.mark.parametrize("value", ["", "   ", "not a date", "2024-13-01", "2024-02-30T10:00:00"])
def test_start_of_day_rejects_unparseable_strings(value):
    with pytest.raises(InvalidDateError):
        start_of_day(value)


def test_start_of_day_rejects_other_types():
    with pytest.raises(InvalidDateError):
        start_of_day(1704067200)  # type: ignore[arg-type]


def test_today_defaults_to_current_utc_day():
    assert today() == datetime.now(UTC).date()
    assert today("2024-01-10T08:00:00Z") == date(2024, 1, 10)


def test_next_day_and_plus_two_cross_month_and_year_boundaries():
    assert next_day(date(2024, 1, 31)) == date(2024, 2, 1)
    assert next_day(datetime(2024, 12, 31, 18, 0)) == date(2025, 1, 1)
    assert plus_two_days(date(2024, 2, 28)) == date(2024, 3, 1)
    assert plus_two_days("2023-02-28") == date(2023, 3, 2)


def test_next_monday_is_strictly_forward_for_every_weekday():
    monday = date(2024, 1, 1)
    for offset in range(7):
        day = monday + timedelta(days=offset)
        result = next_monday(day)
        assert result.weekday() == 0
        assert 1 <= (result - day).days <= 7


def test_next_monday_from_monday_is_seven_days_later():
    assert next_monday(date(2024, 1, 1)) == date(2024, 1, 8)
    assert next_monday(datetime(2024, 1, 1, 9, 30, tzinfo=UTC)) == date(2024, 1, 8)


def test_next_monday_from_sunday_is_next_day():
    assert next_monday(date(2024, 1, 7)) == date(2024, 1, 8)


def test_shift_due_date_dispatch():
    day = date(2024, 1, 3)  # Wednesday
    assert shift_due_date(day, DateShift.NEXT_DAY) == date(2024, 1, 4)
    assert shift_due_date(day, DateShift.PLUS_TWO) == date(2024, 1, 5)
    assert shift_due_date(day, DateShift.NEXT_MONDAY) == date(2024, 1, 8)
