from datetime import date, datetime

from reminders import build_payload, compute_missed_trigger, compute_trigger, missed_message, reminder_message
from schedule_types import Kind, Recurrence, ScheduleDefinition, Weekday


def test_trigger_before_now_is_none():
    now = datetime(2024, 6, 1, 8, 50)
    assert compute_trigger("2024-06-01", "09:00 AM", 15, now) is None


def test_trigger_subtracts_lead_time():
    now = datetime(2024, 6, 1, 8, 0)
    assert compute_trigger("2024-06-01", "09:00 AM", 15, now) == datetime(2024, 6, 1, 8, 45)


def test_zero_minutes_fires_at_deadline():
    now = datetime(2024, 6, 1, 8, 0)
    assert compute_trigger("2024-06-01", "09:00 AM", 0, now) == datetime(2024, 6, 1, 9, 0)


def test_trigger_equal_to_now_is_kept():
    now = datetime(2024, 6, 1, 8, 45)
    assert compute_trigger(date(2024, 6, 1), "09:00 AM", 15, now) == now


def test_missed_trigger_is_the_deadline():
    now = datetime(2024, 6, 1, 8, 0)
    assert compute_missed_trigger("2024-06-01", "12:00 PM", now) == datetime(2024, 6, 1, 12, 0)


def test_message_variants_are_distinguishable():
    task_title, task_body = reminder_message("Essay", Kind.TASK, 10)
    sched_title, sched_body = reminder_message("Physics", Kind.CLASS, 0)
    assert task_title == "Upcoming Task"
    assert task_body == 'Your task "Essay" starts in 10 minutes!'
    assert sched_title == "Upcoming Schedule"
    assert sched_body == 'Your schedule "Physics" starts now!'
    assert missed_message("Essay") == ("Missed Task", 'You missed your task "Essay".')


def test_payload_carries_kind_group():
    d = ScheduleDefinition(
        id=7, user_id=1, kind=Kind.ROUTINE, date=date(2024, 3, 1), time="07:00 AM",
        recurrence=Recurrence.WEEKLY, recurrence_days=frozenset({Weekday.MON}),
        start_date=date(2024, 3, 1), reminder_minutes=5, title="Run",
    )
    payload = build_payload(d, date(2024, 3, 4))
    assert payload['kind_group'] == 'schedule'
    assert payload['type'] == 'Routine'
    assert payload['date'] == '2024-03-04'
    assert payload['task_id'] == 7
    assert payload['missed'] is False
