"""Reminder alarm registration backed by an APScheduler scheduler.

The app builds one ReminderNotifier at startup and hands it to the code that
needs it; nothing registers itself globally.
"""
import logging

import pytz
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when a reminder could not be registered with the scheduler."""


class ReminderNotifier:
    def __init__(self, scheduler=None, timezone='UTC', deliver=None):
        self.tz = pytz.timezone(timezone)
        self.scheduler = scheduler if scheduler is not None else BackgroundScheduler(timezone=self.tz)
        self.deliver = deliver

    @property
    def running(self):
        return bool(getattr(self.scheduler, 'running', False))

    def start(self):
        if self.running:
            return
        self.scheduler.start()
        logger.info("Reminder scheduler started (%s)", self.tz.zone)

    def shutdown(self):
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)

    def schedule(self, trigger, payload):
        """Register a one-shot alarm at the naive local `trigger`; returns the job id handle."""
        prefix = 'missed' if payload.get('missed') else 'reminder'
        run_date = self.tz.localize(trigger)
        job_id = f"{prefix}_{payload.get('task_id')}_{int(run_date.timestamp())}"
        try:
            self.scheduler.add_job(
                self._fire,
                'date',
                run_date=run_date,
                args=[payload],
                id=job_id,
                replace_existing=True,
            )
        except Exception as exc:
            raise NotificationError(f"Could not schedule {job_id}: {exc}") from exc
        logger.info("Scheduled %s for %s", job_id, trigger.isoformat())
        return job_id

    def cancel(self, handle):
        if not handle:
            return
        try:
            self.scheduler.remove_job(handle)
            logger.info("Cancelled notification job %s", handle)
        except JobLookupError:
            logger.debug("Notification job %s already gone", handle)

    def _fire(self, payload):
        if self.deliver:
            self.deliver(payload)
