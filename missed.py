"""Missed-deadline checks and the live countdown label."""
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from calendar_math import combine, parse_time_12h
from schedule_types import Kind, Occurrence, Status

MISSED_LABEL = "Missed"
NOW_LABEL = "Now"


def _status_value(status):
    return getattr(status, "value", status)


def is_missed(deadline: datetime, status, now: datetime) -> bool:
    return _status_value(status) != Status.DONE.value and deadline < now


def is_elapsed(deadline: datetime, now: datetime) -> bool:
    """Schedules whose time has passed count as implicitly done for display."""
    return deadline <= now


def occurrence_deadline(occurrence: Occurrence) -> datetime:
    return combine(occurrence.occurrence_date, parse_time_12h(occurrence.time))


def countdown_label(deadline: datetime, now: datetime, kind: Kind = Kind.TASK, status=Status.PENDING) -> Optional[str]:
    """
    Human countdown for an item that is not done.

    '2d 3h left', '3h 5m left', '12m left', 'Now'; once the deadline passes a
    Task shows 'Missed' and a schedule shows nothing.
    """
    if _status_value(status) == Status.DONE.value:
        return None
    remaining = deadline - now
    if remaining <= timedelta(0):
        return MISSED_LABEL if Kind(kind).is_task else None
    total_seconds = int(remaining.total_seconds())

    days, rest = divmod(total_seconds, 24 * 60 * 60)
    hours, rest = divmod(rest, 60 * 60)
    minutes = rest // 60
    if days > 0:
        return f"{days}d {hours}h left"
    if hours > 0:
        return f"{hours}h {minutes}m left"
    if minutes > 0:
        return f"{minutes}m left"
    return NOW_LABEL


def missed_occurrences(occurrences: Iterable[Occurrence], now: datetime) -> List[Occurrence]:
    """Pending Task occurrences whose deadline has passed, oldest first."""
    out = []
    for occ in occurrences:
        if occ.kind is not Kind.TASK or occ.status is not Status.PENDING:
            continue
        if is_missed(occurrence_deadline(occ), occ.status, now):
            out.append(occ)
    return sorted(out, key=occurrence_deadline)
