"""Time-slot conflict checks between a candidate schedule and a user's existing schedules.

Conflicts are exact time-of-day matches; there is no duration model. Task
deadlines never conflict with anything.
"""
from datetime import date
from typing import Iterable, Optional

from calendar_math import day_of_week_short_name
from schedule_types import Recurrence, ScheduleDefinition


def _windows_overlap(a: ScheduleDefinition, b: ScheduleDefinition) -> bool:
    a_end = a.effective_end or date.max
    b_end = b.effective_end or date.max
    return not (a.effective_start > b_end or a_end < b.effective_start)


def _is_empty_weekly(definition: ScheduleDefinition) -> bool:
    return definition.recurrence is Recurrence.WEEKLY and not definition.recurrence_days


def _one_time_hits(one_time_day: date, repeating: ScheduleDefinition) -> bool:
    if repeating.recurrence is Recurrence.DAILY:
        return True
    if repeating.recurrence is Recurrence.WEEKLY:
        return day_of_week_short_name(one_time_day) in {d.value for d in repeating.recurrence_days}
    return False


def slots_collide(candidate: ScheduleDefinition, existing: ScheduleDefinition) -> bool:
    """Apply the time gate, the date-window gate, then the recurrence pattern rules."""
    if (existing.time or "").strip() != (candidate.time or "").strip():
        return False
    if not _windows_overlap(candidate, existing):
        return False
    if _is_empty_weekly(candidate) or _is_empty_weekly(existing):
        return False

    if not candidate.is_recurring and not existing.is_recurring:
        return existing.date == candidate.date
    if not candidate.is_recurring:
        return _one_time_hits(candidate.date, existing)
    if not existing.is_recurring:
        return _one_time_hits(existing.date, candidate)

    if Recurrence.DAILY in (candidate.recurrence, existing.recurrence):
        return True
    return bool(set(candidate.recurrence_days) & set(existing.recurrence_days))


def find_conflict(candidate: ScheduleDefinition, existing_definitions: Iterable[ScheduleDefinition],
                  exclude_id=None) -> Optional[ScheduleDefinition]:
    """Return the first existing schedule that collides with `candidate`, or None."""
    if candidate.kind.is_task:
        return None
    for existing in existing_definitions:
        if exclude_id is not None and existing.id == exclude_id:
            continue
        if existing.kind.is_task:
            continue
        if slots_collide(candidate, existing):
            return existing
    return None


def has_conflict(candidate: ScheduleDefinition, existing_definitions: Iterable[ScheduleDefinition],
                 exclude_id=None) -> bool:
    return find_conflict(candidate, existing_definitions, exclude_id=exclude_id) is not None
