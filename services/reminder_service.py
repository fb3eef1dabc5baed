"""Registering, cancelling and delivering reminder alarms for stored tasks."""
import json
import logging
from datetime import timedelta

from calendar_math import FormatError
from notification_service import NotificationError
from recurrence import expand
from reminders import build_payload, compute_missed_trigger, compute_trigger
from schedule_types import Status

logger = logging.getLogger(__name__)

LOOKAHEAD_DAYS = 7


def next_reminder(definition, now):
    """
    Return (occurrence_date, trigger) for the next reminder that is still in the future,
    or (None, None). Repeating definitions look ahead one week past the reminder offset.
    """
    if not definition.is_recurring:
        trigger = compute_trigger(definition.date, definition.time, definition.reminder_minutes, now)
        return (definition.date, trigger) if trigger else (None, None)

    span = LOOKAHEAD_DAYS + definition.reminder_minutes // (24 * 60) + 1
    for occ in expand(definition, now.date(), now.date() + timedelta(days=span)):
        trigger = compute_trigger(occ.occurrence_date, definition.time, definition.reminder_minutes, now)
        if trigger:
            return occ.occurrence_date, trigger
    return None, None


def next_missed_alarm(definition, now):
    # Tasks are always saved one-time, so only the row's own date is checked
    if not definition.kind.is_task or definition.status is Status.DONE:
        return None, None
    trigger = compute_missed_trigger(definition.date, definition.time, now)
    return (definition.date, trigger) if trigger else (None, None)


def cancel_reminders(task, notifier):
    """Cancel both alarms of a row. Must run before a new trigger is registered."""
    if notifier:
        notifier.cancel(task.notification_id)
        notifier.cancel(task.missed_notification_id)
    task.notification_id = None
    task.missed_notification_id = None


def register_reminders(task, notifier, now):
    """Schedule the reminder (and, for Tasks, the missed alarm) and store the handles on the row."""
    task.notification_id = None
    task.missed_notification_id = None
    if not notifier or task.status == Status.DONE.value:
        return task
    try:
        definition = task.to_definition()
    except FormatError as exc:
        logger.warning("Not scheduling reminders for task %s: %s", task.id, exc)
        return task

    day, trigger = next_reminder(definition, now)
    if trigger:
        try:
            task.notification_id = notifier.schedule(trigger, build_payload(definition, day))
        except NotificationError as exc:
            logger.error("Error scheduling reminder for task %s: %s", task.id, exc)

    day, trigger = next_missed_alarm(definition, now)
    if trigger:
        try:
            task.missed_notification_id = notifier.schedule(trigger, build_payload(definition, day, missed=True))
        except NotificationError as exc:
            logger.error("Error scheduling missed alarm for task %s: %s", task.id, exc)
    return task


def deliver_notification(payload, now):
    """
    Record a fired alarm as an in-app notification and chain the next alarm of a
    repeating row. Missed alarms are dropped when the task was completed meanwhile.
    """
    import app as a
    storage = a.storage

    task = a.db.session.get(a.Task, payload.get('task_id'))
    if not task:
        return None
    if payload.get('missed') and task.status == Status.DONE.value:
        return None

    notif = storage.record_notification(
        task.user_id,
        task.id,
        'missed' if payload.get('missed') else 'reminder',
        payload.get('title'),
        payload.get('body'),
        json.dumps(payload),
    )

    if task.repeat_frequency != 'none' and task.status != Status.DONE.value:
        register_reminders(task, a.notifier, now + timedelta(minutes=1))
    elif payload.get('missed'):
        task.missed_notification_id = None
    else:
        task.notification_id = None
    a.db.session.commit()
    return notif
