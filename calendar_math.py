"""Date/time helpers for the stored `YYYY-MM-DD` and `HH:MM AM/PM` strings.

All values are naive local wall-clock; nothing here shifts time zones.
"""
import re
from datetime import date, datetime, time

WEEKDAY_SHORT_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

_DATE_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{1,2})-(?P<day>\d{1,2})$")
_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*(?P<ampm>am|pm)$", re.IGNORECASE)


class FormatError(ValueError):
    """Raised when a stored date or time string cannot be parsed."""


def parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    m = _DATE_RE.match(str(value or "").strip())
    if not m:
        raise FormatError(f"Invalid date {value!r}, expected YYYY-MM-DD")
    try:
        return date(int(m.group("year")), int(m.group("month")), int(m.group("day")))
    except ValueError as exc:
        raise FormatError(f"Invalid date {value!r}: {exc}") from exc


def format_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_time_12h(value) -> time:
    """Parse '02:00 PM' style strings. '12:xx AM' is midnight, '12:xx PM' is noon."""
    if isinstance(value, time):
        return value
    m = _TIME_RE.match(str(value or "").strip())
    if not m:
        raise FormatError(f"Invalid time {value!r}, expected HH:MM AM/PM")
    hour = int(m.group("hour"))
    minute = int(m.group("minute"))
    if not (1 <= hour <= 12 and 0 <= minute <= 59):
        raise FormatError(f"Invalid time {value!r}")
    if hour == 12:
        hour = 0
    if m.group("ampm").upper() == "PM":
        hour += 12
    return time(hour=hour, minute=minute)


def format_time_12h(value: time, padded: bool = True) -> str:
    """Render a time as 12-hour text. Add/edit flows pad the hour, list displays don't."""
    ampm = "PM" if value.hour >= 12 else "AM"
    hour = value.hour % 12 or 12
    if padded:
        return f"{hour:02d}:{value.minute:02d} {ampm}"
    return f"{hour}:{value.minute:02d} {ampm}"


def combine(day: date, at: time) -> datetime:
    return datetime.combine(day, time(at.hour, at.minute))


def parse_deadline(date_value, time_value) -> datetime:
    return combine(parse_date(date_value), parse_time_12h(time_value))


def day_of_week_short_name(day: date) -> str:
    # date.weekday() is Monday=0, the stored names start at Sunday
    return WEEKDAY_SHORT_NAMES[(day.weekday() + 1) % 7]
