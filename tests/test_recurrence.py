from datetime import date

import pytest

from calendar_math import FormatError
from recurrence import InvalidRangeError, expand, expand_all, group_by_day
from schedule_types import Kind, OccurrenceKey, Recurrence, ScheduleDefinition, Weekday


def make_def(**kwargs):
    base = dict(id=1, user_id=1, kind=Kind.CLASS, date=date(2024, 1, 10), time="09:00 AM", title="Physics")
    base.update(kwargs)
    return ScheduleDefinition(**base)


def test_one_time_inside_range():
    d = make_def(kind=Kind.TASK)
    occ = expand(d, date(2024, 1, 1), date(2024, 1, 31))
    assert [o.occurrence_date for o in occ] == [date(2024, 1, 10)]
    assert occ[0].occurrence_id == "1-2024-01-10"


def test_one_time_outside_range_contributes_nothing():
    d = make_def(kind=Kind.TASK)
    assert expand(d, date(2024, 1, 11), date(2024, 1, 31)) == []


def test_one_time_ignores_start_and_end_dates():
    d = make_def(start_date=date(2023, 1, 1), end_date=date(2025, 1, 1))
    occ = expand(d, date(2024, 1, 1), date(2024, 1, 31))
    assert len(occ) == 1


def test_daily_boundary_is_inclusive():
    d = make_def(recurrence=Recurrence.DAILY, start_date=date(2024, 1, 10))
    occ = expand(d, date(2024, 1, 10), date(2024, 1, 10))
    assert [o.occurrence_date for o in occ] == [date(2024, 1, 10)]
    assert expand(d, date(2024, 1, 1), date(2024, 1, 9)) == []


def test_daily_respects_end_date():
    d = make_def(recurrence=Recurrence.DAILY, start_date=date(2024, 1, 10), end_date=date(2024, 1, 12))
    occ = expand(d, date(2024, 1, 1), date(2024, 1, 31))
    assert [o.occurrence_date.day for o in occ] == [10, 11, 12]


def test_daily_falls_back_to_date_when_start_missing():
    d = make_def(recurrence=Recurrence.DAILY, date=date(2024, 1, 30))
    occ = expand(d, date(2024, 1, 29), date(2024, 2, 1))
    assert [o.occurrence_date for o in occ] == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1)]


def test_weekly_filters_by_weekday():
    d = make_def(
        recurrence=Recurrence.WEEKLY,
        recurrence_days=frozenset({Weekday.MON, Weekday.WED}),
        start_date=date(2024, 1, 1),
    )
    # 2024-03-03 is a Sunday; the week holds one Monday and one Wednesday
    occ = expand(d, date(2024, 3, 3), date(2024, 3, 9))
    assert [o.occurrence_date for o in occ] == [date(2024, 3, 4), date(2024, 3, 6)]


def test_weekly_with_no_days_is_empty():
    d = make_def(recurrence=Recurrence.WEEKLY, start_date=date(2024, 1, 1))
    assert expand(d, date(2024, 1, 1), date(2024, 12, 31)) == []


def test_window_after_range_walks_nothing():
    d = make_def(recurrence=Recurrence.DAILY, start_date=date(2025, 1, 1))
    assert expand(d, date(2024, 1, 1), date(2024, 12, 31)) == []


def test_window_ending_before_range_walks_nothing():
    d = make_def(recurrence=Recurrence.DAILY, start_date=date(2023, 1, 1), end_date=date(2023, 12, 31))
    assert expand(d, date(2024, 1, 1), date(2024, 1, 31)) == []


def test_invalid_range_raises():
    with pytest.raises(InvalidRangeError):
        expand(make_def(), date(2024, 2, 1), date(2024, 1, 1))


def test_occurrences_copy_time_and_point_back_to_definition():
    d = make_def(recurrence=Recurrence.DAILY, start_date=date(2024, 1, 10), time="02:00 PM")
    occ = expand(d, date(2024, 1, 10), date(2024, 1, 12))
    assert {o.time for o in occ} == {"02:00 PM"}
    assert {o.definition_id for o in occ} == {1}
    assert all(o.definition is d for o in occ)


def test_occurrence_key_decodes_back():
    key = OccurrenceKey.decode("42-2024-03-04")
    assert key == OccurrenceKey(42, date(2024, 3, 4))
    assert str(key) == "42-2024-03-04"


class _Row:
    def __init__(self, id, definition=None, error=None):
        self.id = id
        self._definition = definition
        self._error = error

    def to_definition(self):
        if self._error:
            raise self._error
        return self._definition


def test_expand_all_skips_corrupt_rows(caplog):
    good = make_def(id=2, kind=Kind.TASK, date=date(2024, 1, 5))
    rows = [_Row(1, error=FormatError("bad date")), _Row(2, good)]
    occ = expand_all(rows, date(2024, 1, 1), date(2024, 1, 31), to_definition=lambda r: r.to_definition())
    assert [o.definition_id for o in occ] == [2]
    assert "Skipping definition 1" in caplog.text


def test_expand_all_does_not_swallow_invalid_range():
    with pytest.raises(InvalidRangeError):
        expand_all([make_def()], date(2024, 2, 1), date(2024, 1, 1))


def test_group_by_day_sorts_by_time_of_day():
    morning = make_def(id=1, kind=Kind.TASK, time="09:00 AM", title="a")
    evening = make_def(id=2, kind=Kind.TASK, time="07:00 PM", title="b")
    midnight = make_def(id=3, kind=Kind.TASK, time="12:00 AM", title="c")
    occ = expand_all([evening, morning, midnight], date(2024, 1, 10), date(2024, 1, 10))
    grouped = group_by_day(occ)
    assert [o.definition_id for o in grouped[date(2024, 1, 10)]] == [3, 1, 2]
