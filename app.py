import atexit
import os
import re
from datetime import datetime, timedelta

import pytz
from flask import Flask, request, jsonify, session

from config import Config, configure_logging
from models import db, User, Task, Notification
import storage
from storage import DuplicateEmailError
from calendar_math import FormatError, format_date, parse_deadline
from schedule_types import OccurrenceKey
from recurrence import InvalidRangeError, expand_all, group_by_day, sort_key_by_time
from conflicts import find_conflict
from missed import countdown_label, is_elapsed, is_missed, missed_occurrences, occurrence_deadline
from notification_service import ReminderNotifier
from services.validation_service import (
    build_task_fields,
    fields_to_definition,
    parse_bool,
    parse_day_value,
    parse_task_ref,
)
from services.reminder_service import cancel_reminders, deliver_notification, register_reminders
from services import notification_routes, planner_routes, task_routes, user_routes

configure_logging()

app = Flask(__name__)
app.config.from_object(Config)

db.init_app(app)


def _now_local():
    tz = pytz.timezone(app.config.get('DEFAULT_TIMEZONE', 'UTC'))
    return datetime.now(tz).replace(tzinfo=None)


def _deliver(payload):
    with app.app_context():
        try:
            deliver_notification(payload, _now_local())
        except Exception as e:
            app.logger.error(f"Error delivering notification for task {payload.get('task_id')}: {e}")


notifier = ReminderNotifier(timezone=app.config['DEFAULT_TIMEZONE'], deliver=_deliver)


def get_current_user():
    """Resolve the current user from an X-User-Id header, else fall back to session."""
    header_user_id = request.headers.get('X-User-Id')
    if header_user_id:
        try:
            return db.session.get(User, int(header_user_id))
        except (TypeError, ValueError):
            return None

    user_id = session.get('user_id')
    if user_id:
        return db.session.get(User, user_id)
    return None


with app.app_context():
    db.create_all()


def _schedule_existing_reminders():
    """Re-register alarms for pending rows on startup; job handles do not survive a restart."""
    with app.app_context():
        now = _now_local()
        today_str = format_date(now.date())
        scheduled_count = 0
        for user in User.query.all():
            for task in storage.fetch_upcoming(user.id, today_str):
                try:
                    register_reminders(task, notifier, now)
                    scheduled_count += 1
                except Exception as e:
                    app.logger.error(f"Error scheduling reminder for task {task.id}: {e}")
        db.session.commit()
        app.logger.info(f"Re-registered reminders for {scheduled_count} tasks")


def _start_scheduler():
    """Start the reminder scheduler once per process."""
    if not app.config.get('ENABLE_REMINDER_JOBS'):
        return
    if notifier.running:
        return
    # Avoid double-start in Flask debug reloader
    if app.debug and os.environ.get('WERKZEUG_RUN_MAIN') != 'true':
        return
    notifier.start()
    atexit.register(notifier.shutdown)
    _schedule_existing_reminders()


_jobs_bootstrapped = False


@app.before_request
def _bootstrap_background_jobs():
    global _jobs_bootstrapped
    if _jobs_bootstrapped:
        return
    _start_scheduler()
    _jobs_bootstrapped = True


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


# Users
app.add_url_rule('/api/users/signup', view_func=user_routes.signup, methods=['POST'])
app.add_url_rule('/api/users/login', view_func=user_routes.login, methods=['POST'])
app.add_url_rule('/api/users/logout', view_func=user_routes.logout, methods=['POST'])
app.add_url_rule('/api/users/me', view_func=user_routes.current_user_info)

# Planner views
app.add_url_rule('/api/tasks', view_func=planner_routes.list_occurrences, methods=['GET'])
app.add_url_rule('/api/tasks/today', view_func=planner_routes.list_today)
app.add_url_rule('/api/tasks/missed', view_func=planner_routes.list_missed)
app.add_url_rule('/api/tasks/completed', view_func=planner_routes.list_completed)
app.add_url_rule('/api/tasks/<task_ref>/countdown', view_func=planner_routes.task_countdown)

# Add / edit / complete / delete
app.add_url_rule('/api/tasks', view_func=task_routes.create_task, methods=['POST'])
app.add_url_rule('/api/tasks/check-conflict', view_func=task_routes.check_conflict, methods=['POST'])
app.add_url_rule('/api/tasks/<task_ref>', view_func=task_routes.update_task, methods=['PUT'])
app.add_url_rule('/api/tasks/<task_ref>', view_func=task_routes.delete_task, methods=['DELETE'])
app.add_url_rule('/api/tasks/<task_ref>/done', view_func=task_routes.complete_task, methods=['POST'])

# Notifications
app.add_url_rule('/api/notifications', view_func=notification_routes.list_notifications)
app.add_url_rule('/api/notifications/<int:notification_id>/read',
                 view_func=notification_routes.mark_notification_read, methods=['POST'])


if __name__ == '__main__':
    app.run(host='0.0.0.0', debug=True)
