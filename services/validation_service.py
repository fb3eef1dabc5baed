from datetime import date, datetime, time
import re

from calendar_math import FormatError, format_date, format_time_12h, parse_date, parse_time_12h
from schedule_types import (
    Kind,
    OccurrenceKey,
    Recurrence,
    ScheduleDefinition,
    Status,
    decode_repeat_days,
    encode_repeat_days,
    parse_weekdays,
)


def parse_bool(value, default=False):
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ["1", "true", "yes", "on"]


def parse_time_str(val):
    """Parse 24h or am/pm strings into a time object; return None on failure."""
    if not val:
        return None
    if isinstance(val, time):
        return val
    try:
        return parse_time_12h(val)
    except FormatError:
        pass
    s = str(val).strip().lower().replace(" ", "")
    m = re.match(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(:(?P<second>\d{2}))?$", s)
    if not m:
        return None
    hour = int(m.group("hour"))
    minute = int(m.group("minute"))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return time(hour=hour, minute=minute)


def parse_day_value(raw):
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    try:
        return parse_date(raw)
    except FormatError:
        return None


def parse_reminder_minutes(raw, default=5):
    if raw is None or raw == '':
        return default
    try:
        minutes = int(raw)
    except (TypeError, ValueError):
        return None
    if minutes < 0:
        return None
    return minutes


def parse_task_ref(raw):
    """Accept a plain row id or an occurrence key like '12-2024-03-04'; return the row id."""
    s = str(raw or '').strip()
    if s.isdigit():
        return int(s)
    try:
        return OccurrenceKey.decode(s).definition_id
    except FormatError:
        return None


def build_task_fields(data, defaults=None, default_reminder=5, today=None):
    """
    Validate an add/edit payload. Returns (fields, error). `defaults` holds the current
    row values for partial edits; dates sent in `data` win over them. Tasks use `date`;
    schedules use start/end dates. `today` is the fallback date (the app's local day).
    """
    merged = dict(defaults or {})
    merged.update(data or {})
    today = today or date.today()

    title = (merged.get('title') or '').strip()
    if not title:
        return None, 'Title is required'

    try:
        kind = Kind(str(merged.get('type') or 'Task').strip().title())
    except ValueError:
        return None, 'Invalid type'

    at = parse_time_str(merged.get('time'))
    if not at:
        return None, 'Invalid time'

    recurrence_raw = str(merged.get('repeat_frequency') or 'none').strip().lower()
    try:
        recurrence = Recurrence(recurrence_raw)
    except ValueError:
        return None, 'repeat_frequency must be none, daily or weekly'
    if kind.is_task:
        recurrence = Recurrence.NONE

    repeat_days = frozenset()
    if recurrence is Recurrence.WEEKLY:
        try:
            repeat_days = parse_weekdays(merged.get('repeat_days') or [])
        except FormatError as exc:
            return None, str(exc)
        if not repeat_days:
            return None, 'Pick at least one day for a weekly schedule'

    start_day = end_day = None
    if kind.is_task:
        day = parse_day_value(merged.get('date') or today)
        if not day:
            return None, 'Invalid date'
    else:
        requested = data or {}
        day = parse_day_value(requested.get('start_date') or requested.get('date')
                              or merged.get('start_date') or merged.get('date') or today)
        if not day:
            return None, 'Invalid start date'
        start_day = day
        if merged.get('end_date'):
            end_day = parse_day_value(merged.get('end_date'))
            if not end_day:
                return None, 'Invalid end date'
            if end_day < start_day:
                return None, 'end_date must be on/after start_date'

    reminder = parse_reminder_minutes(merged.get('reminder_minutes'), default_reminder)
    if reminder is None:
        return None, 'reminder_minutes must be a non-negative integer'

    status = str(merged.get('status') or 'pending').lower()
    if status not in (Status.PENDING.value, Status.DONE.value):
        status = Status.PENDING.value

    fields = {
        'title': title,
        'description': (merged.get('description') or '').strip() or None,
        'type': kind.value,
        'location': (merged.get('location') or '').strip() or None,
        'date': format_date(day),
        'time': format_time_12h(at, padded=True),
        'repeat_frequency': recurrence.value,
        'repeat_days': encode_repeat_days(repeat_days),
        'start_date': format_date(start_day) if start_day else None,
        'end_date': format_date(end_day) if end_day else None,
        'status': status,
        'reminder_minutes': reminder,
    }
    return fields, None


def fields_to_definition(fields, definition_id=None, user_id=None):
    """Candidate definition for a payload that has not been saved yet."""
    return ScheduleDefinition(
        id=definition_id,
        user_id=user_id,
        kind=Kind(fields['type']),
        date=parse_date(fields['date']),
        time=fields['time'],
        recurrence=Recurrence(fields['repeat_frequency']),
        recurrence_days=decode_repeat_days(fields["repeat_days"]),
        start_date=parse_date(fields['start_date']) if fields['start_date'] else None,
        end_date=parse_date(fields['end_date']) if fields['end_date'] else None,
        status=Status(fields['status']),
        reminder_minutes=fields['reminder_minutes'],
        title=fields['title'],
        description=fields['description'],
        location=fields['location'],
    )
