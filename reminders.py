"""Reminder trigger computation and notification message text."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from calendar_math import combine, format_date, parse_date, parse_time_12h
from schedule_types import Kind, ScheduleDefinition

logger = logging.getLogger(__name__)


def compute_trigger(deadline_date, deadline_time, reminder_minutes, now: datetime) -> Optional[datetime]:
    """
    Return the instant a reminder should fire, or None when it would already be in the past.

    reminder_minutes=0 fires exactly at the deadline.
    """
    deadline = combine(parse_date(deadline_date), parse_time_12h(deadline_time))
    trigger = deadline - timedelta(minutes=max(int(reminder_minutes or 0), 0))
    if trigger < now:
        logger.debug("Reminder for %s %s already past (%s < %s)", deadline_date, deadline_time, trigger, now)
        return None
    return trigger


def compute_missed_trigger(deadline_date, deadline_time, now: datetime) -> Optional[datetime]:
    """The missed-task alarm fires at the deadline itself."""
    return compute_trigger(deadline_date, deadline_time, 0, now)


def _starts_phrase(reminder_minutes):
    minutes = int(reminder_minutes or 0)
    if minutes > 0:
        return f"starts in {minutes} minutes"
    return "starts now"


def reminder_message(title, kind: Kind, reminder_minutes):
    """Return (title, body) for an upcoming reminder; Tasks and Schedules are phrased differently."""
    phrase = _starts_phrase(reminder_minutes)
    if kind.is_task:
        return "Upcoming Task", f'Your task "{title}" {phrase}!'
    return "Upcoming Schedule", f'Your schedule "{title}" {phrase}!'


def missed_message(title):
    return "Missed Task", f'You missed your task "{title}".'


def build_payload(definition: ScheduleDefinition, occurrence_date=None, missed=False) -> dict:
    """Notification payload; `kind_group` lets the receiving UI route taps."""
    day = occurrence_date or definition.effective_start
    if missed:
        heading, body = missed_message(definition.title)
    else:
        heading, body = reminder_message(definition.title, definition.kind, definition.reminder_minutes)
    return {
        'task_id': definition.id,
        'user_id': definition.user_id,
        'title': heading,
        'body': body,
        'date': format_date(day),
        'time': definition.time,
        'type': definition.kind.value,
        'kind_group': definition.kind.group,
        'missed': bool(missed),
    }
