"""
Due date helpers

All due date arithmetic works on calendar days in UTC. A due date is a plain
datetime.date; start_of_day() is the single entry point that turns whatever a
caller supplies (date, datetime, ISO-8601 string) into one.
"""

from datetime import UTC, date, datetime, timedelta
from enum import Enum

from app.core.errors import InvalidDateError

MONDAY = 0  # date.weekday()


class DateShift(str, Enum):
    """Due date moves offered by the move-date action"""

    NEXT_DAY = "nextDay"
    PLUS_TWO = "plusTwo"
    NEXT_MONDAY = "nextMonday"


def _parse(value: str) -> date | datetime:
    raw = value.strip()
    if not raw:
        raise InvalidDateError("Date value is empty.")
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidDateError(f"Invalid date: {value!r}")


def start_of_day(value: date | datetime | str) -> date:
    """
    Normalize a date-like value to its UTC calendar day.

    Aware datetimes are converted to UTC first; naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        value = _parse(value)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.date()

    if isinstance(value, date):
        return value

    raise InvalidDateError(f"Unsupported date value of type {type(value).__name__}")


def today(now: date | datetime | str | None = None) -> date:
    return start_of_day(now if now is not None else datetime.now(UTC))


def next_day(value: date | datetime | str) -> date:
    return start_of_day(value) + timedelta(days=1)


def plus_two_days(value: date | datetime | str) -> date:
    return start_of_day(value) + timedelta(days=2)


def next_monday(value: date | datetime | str) -> date:
    """The next Monday strictly after the given day (a Monday moves a full week)"""
    day = start_of_day(value)
    days_ahead = (MONDAY - day.weekday()) % 7 or 7
    return day + timedelta(days=days_ahead)


def shift_due_date(value: date | datetime | str, shift: DateShift) -> date:
    match shift:
        case DateShift.NEXT_DAY:
            return next_day(value)
        case DateShift.PLUS_TWO:
            return plus_two_days(value)
        case DateShift.NEXT_MONDAY:
            return next_monday(value)
    raise InvalidDateError(f"Unknown date shift: {shift!r}")
