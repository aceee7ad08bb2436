"""
Slot catalog and calendar arithmetic shared by availability and booking.

All stored dates are UTC midnights of the booked day; day and week windows
are half-open (`[start, next_start)`).
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple

from app.core.errors import InvalidInput

DAY_SLOTS = ["12:30 PM", "4:30 PM", "8:30 PM"]

DATE_FORMAT = "%Y-%m-%d"

# Optional country code, digits with optional separators
PHONE_PATTERN = re.compile(r"^\+?[\d\s().-]+$")
PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def parse_date(value: str) -> date:
    if not value or not isinstance(value, str):
        raise InvalidInput("Date is required in YYYY-MM-DD format")
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidInput(f"Invalid date '{value}', expected YYYY-MM-DD") from None


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def day_range(day: date) -> Tuple[datetime, datetime]:
    start = start_of_day(day)
    try:
        return start, start + timedelta(days=1)
    except OverflowError:
        raise InvalidInput(f"Date {day.isoformat()} is out of range") from None


def week_window(day: date) -> Tuple[datetime, datetime]:
    """Monday 00:00 of the week containing `day` and the following Monday."""
    monday = start_of_day(day - timedelta(days=day.weekday()))
    try:
        return monday, monday + timedelta(days=7)
    except OverflowError:
        raise InvalidInput(f"Date {day.isoformat()} is out of range") from None


def end_of_week(day: date) -> datetime:
    """Sunday 23:59:59.999 of the Monday-start week containing `day`."""
    _, next_monday = week_window(day)
    return next_monday - timedelta(milliseconds=1)


def is_valid_slot(label: str) -> bool:
    return label in DAY_SLOTS


def to_24_hour(label: str) -> time:
    """'4:30 PM' -> 16:30"""
    try:
        return datetime.strptime(label.strip().upper(), "%I:%M %p").time()
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid time '{label}'") from None


def is_valid_phone(value: str) -> bool:
    if not value or not PHONE_PATTERN.match(value.strip()):
        return False
    digits = sum(ch.isdigit() for ch in value)
    return PHONE_MIN_DIGITS <= digits <= PHONE_MAX_DIGITS
