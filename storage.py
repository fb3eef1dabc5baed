"""Query and write helpers over the `tasks` and `users` tables."""
from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from models import db, Task, User, Notification


class DuplicateEmailError(ValueError):
    pass


# --- Users ---

def insert_user(name, email, password):
    user = User(name=name.strip(), email=email.strip().lower())
    user.set_password(password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise DuplicateEmailError('This email is already registered.') from exc
    return user


def get_user(email, password):
    user = User.query.filter_by(email=(email or '').strip().lower()).first()
    if user and user.check_password(password or ''):
        return user
    return None


# --- Tasks ---

def fetch_definitions_for_user(user_id):
    """All of a user's rows regardless of recurrence; range filtering happens after expansion."""
    return Task.query.filter_by(user_id=user_id).order_by(Task.id.asc()).all()


def fetch_tasks_by_date(user_id, day_str):
    return Task.query.filter_by(user_id=user_id, date=day_str).all()


def fetch_upcoming(user_id, today_str):
    """Rows that may still produce occurrences on/after today (string compare works on YYYY-MM-DD)."""
    return Task.query.filter(
        Task.user_id == user_id,
        Task.status == 'pending',
        or_(
            Task.date >= today_str,
            and_(Task.end_date.is_(None), Task.repeat_frequency != 'none'),
            Task.end_date >= today_str,
        )
    ).all()


def fetch_completed(user_id):
    return Task.query.filter_by(user_id=user_id, status='done').order_by(Task.updated_at.desc()).all()


def fetch_pending_tasks(user_id):
    """Pre-filter for the missed list: only Task-kind rows still pending."""
    return Task.query.filter_by(user_id=user_id, type='Task', status='pending').all()


def get_task(user_id, task_id):
    return Task.query.filter_by(id=task_id, user_id=user_id).first()


def add_task(**fields):
    task = Task(**fields)
    db.session.add(task)
    db.session.commit()
    return task


def update_task(task, **fields):
    for key, value in fields.items():
        setattr(task, key, value)
    db.session.commit()
    return task


def mark_task_done(task):
    task.status = 'done'
    db.session.commit()
    return task


def delete_task(task):
    db.session.delete(task)
    db.session.commit()


# --- Notifications ---

def record_notification(user_id, task_id, kind, title, body, payload_json):
    notif = Notification(
        user_id=user_id,
        task_id=task_id,
        type=kind,
        title=title,
        body=body,
        payload=payload_json,
    )
    db.session.add(notif)
    db.session.commit()
    return notif


def fetch_notifications(user_id, limit=50):
    return Notification.query.filter_by(user_id=user_id).order_by(
        Notification.created_at.desc()
    ).limit(limit).all()
