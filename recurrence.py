"""Expand stored task/schedule definitions into concrete dated occurrences."""
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List

from calendar_math import FormatError, day_of_week_short_name, parse_time_12h
from schedule_types import Occurrence, OccurrenceKey, Recurrence, ScheduleDefinition

logger = logging.getLogger(__name__)


class InvalidRangeError(ValueError):
    """Raised when an expansion window starts after it ends."""


def _occurs_on(definition: ScheduleDefinition, day_value: date) -> bool:
    if definition.recurrence is Recurrence.DAILY:
        return True
    if definition.recurrence is Recurrence.WEEKLY:
        return day_of_week_short_name(day_value) in {d.value for d in definition.recurrence_days}
    return False


def expand(definition: ScheduleDefinition, range_start: date, range_end: date) -> List[Occurrence]:
    """
    Return the occurrences of `definition` between range_start and range_end (inclusive).

    One-time definitions contribute their own date when it falls in the range.
    Recurring definitions walk every day of their validity window clipped to the range.
    """
    if range_start > range_end:
        raise InvalidRangeError(f"range start {range_start} is after range end {range_end}")

    if not definition.is_recurring:
        if range_start <= definition.date <= range_end:
            return [Occurrence(OccurrenceKey(definition.id, definition.date), definition)]
        return []

    if definition.recurrence is Recurrence.WEEKLY and not definition.recurrence_days:
        return []

    first = max(definition.effective_start, range_start)
    last = range_end if definition.effective_end is None else min(definition.effective_end, range_end)

    out: List[Occurrence] = []
    current = first
    while current <= last:
        if _occurs_on(definition, current):
            out.append(Occurrence(OccurrenceKey(definition.id, current), definition))
        current += timedelta(days=1)
    return out


def expand_all(definitions: Iterable, range_start: date, range_end: date, to_definition=None) -> List[Occurrence]:
    """
    Expand many rows at once. A row that fails to parse is logged and skipped so
    one corrupt record does not hide the rest of the user's schedule.
    """
    if range_start > range_end:
        raise InvalidRangeError(f"range start {range_start} is after range end {range_end}")

    out: List[Occurrence] = []
    for raw in definitions:
        try:
            definition = to_definition(raw) if to_definition else raw
            out.extend(expand(definition, range_start, range_end))
        except FormatError as exc:
            logger.warning("Skipping definition %s during expansion: %s", getattr(raw, "id", None), exc)
    return out


def sort_key_by_time(occurrence: Occurrence):
    try:
        at = parse_time_12h(occurrence.time)
    except FormatError:
        return (occurrence.occurrence_date, 24 * 60, occurrence.title)
    return (occurrence.occurrence_date, at.hour * 60 + at.minute, occurrence.title)


def group_by_day(occurrences: Iterable[Occurrence]) -> Dict[date, List[Occurrence]]:
    """Group occurrences by date, each day ordered by time of day (planner/timeline views)."""
    by_day: Dict[date, List[Occurrence]] = {}
    for occ in sorted(occurrences, key=sort_key_by_time):
        by_day.setdefault(occ.occurrence_date, []).append(occ)
    return by_day
