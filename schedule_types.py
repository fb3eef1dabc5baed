"""Engine-side view of stored task/schedule rows and their expanded occurrences."""
import json
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import FrozenSet, Optional

from calendar_math import FormatError, format_date, parse_date


class Kind(str, Enum):
    TASK = "Task"
    CLASS = "Class"
    ROUTINE = "Routine"
    MEETING = "Meeting"
    WORK = "Work"

    @property
    def is_task(self) -> bool:
        return self is Kind.TASK

    @property
    def group(self) -> str:
        """'task' or 'schedule', used to route notification taps."""
        return "task" if self is Kind.TASK else "schedule"


class Recurrence(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


class Status(str, Enum):
    PENDING = "pending"
    DONE = "done"


class Weekday(str, Enum):
    SUN = "Sun"
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"


SCHEDULE_KINDS = (Kind.CLASS, Kind.ROUTINE, Kind.MEETING, Kind.WORK)
WEEKDAY_ORDER = list(Weekday)


def parse_weekdays(raw) -> FrozenSet[Weekday]:
    """Accept a list of short names (or Weekday members) and return a frozenset."""
    days = set()
    for value in raw or []:
        try:
            days.add(Weekday(str(getattr(value, "value", value)).strip().title()[:3]))
        except ValueError:
            raise FormatError(f"Unknown weekday {value!r}") from None
    return frozenset(days)


def decode_repeat_days(raw) -> FrozenSet[Weekday]:
    """Decode the JSON array stored in the `repeat_days` column."""
    if raw is None or raw == "":
        return frozenset()
    if isinstance(raw, (list, tuple, set, frozenset)):
        return parse_weekdays(raw)
    try:
        values = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Invalid repeat_days {raw!r}: {exc}") from exc
    if values is None:
        return frozenset()
    if not isinstance(values, list):
        raise FormatError(f"repeat_days must be a JSON array, got {raw!r}")
    return parse_weekdays(values)


def encode_repeat_days(days) -> Optional[str]:
    if not days:
        return None
    ordered = [d.value for d in WEEKDAY_ORDER if d in set(days)]
    return json.dumps(ordered)


@dataclass(frozen=True)
class ScheduleDefinition:
    id: Optional[int]
    user_id: Optional[int]
    kind: Kind
    date: date
    time: str
    recurrence: Recurrence = Recurrence.NONE
    recurrence_days: FrozenSet[Weekday] = field(default_factory=frozenset)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Status = Status.PENDING
    reminder_minutes: int = 0
    notification_id: Optional[str] = None
    missed_notification_id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not Recurrence.NONE

    @property
    def effective_start(self) -> date:
        if self.is_recurring and self.start_date:
            return self.start_date
        return self.date

    @property
    def effective_end(self) -> Optional[date]:
        """Last valid day, or None when the definition runs forever."""
        if self.is_recurring:
            return self.end_date
        return self.date


@dataclass(frozen=True, order=True)
class OccurrenceKey:
    definition_id: int
    occurrence_date: date

    def encode(self) -> str:
        return f"{self.definition_id}-{format_date(self.occurrence_date)}"

    def __str__(self) -> str:
        return self.encode()

    @classmethod
    def decode(cls, raw: str) -> "OccurrenceKey":
        head, sep, tail = str(raw).partition("-")
        if not sep:
            raise FormatError(f"Invalid occurrence key {raw!r}")
        try:
            definition_id = int(head)
        except ValueError as exc:
            raise FormatError(f"Invalid occurrence key {raw!r}") from exc
        return cls(definition_id, parse_date(tail))


@dataclass(frozen=True)
class Occurrence:
    key: OccurrenceKey
    definition: ScheduleDefinition

    @property
    def occurrence_id(self) -> str:
        return self.key.encode()

    @property
    def definition_id(self) -> int:
        return self.key.definition_id

    @property
    def occurrence_date(self) -> date:
        return self.key.occurrence_date

    @property
    def time(self) -> str:
        return self.definition.time

    @property
    def title(self) -> str:
        return self.definition.title

    @property
    def kind(self) -> Kind:
        return self.definition.kind

    @property
    def status(self) -> Status:
        return self.definition.status

    def to_dict(self) -> dict:
        d = self.definition
        return {
            'id': self.occurrence_id,
            'definition_id': self.definition_id,
            'date': format_date(self.occurrence_date),
            'time': d.time,
            'title': d.title,
            'description': d.description,
            'location': d.location,
            'type': d.kind.value,
            'status': d.status.value,
            'repeat_frequency': d.recurrence.value,
            'repeat_days': [w.value for w in WEEKDAY_ORDER if w in d.recurrence_days] or None,
            'reminder_minutes': d.reminder_minutes,
        }
