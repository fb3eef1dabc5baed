import json
from datetime import datetime

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

from calendar_math import FormatError, parse_date, parse_time_12h
from schedule_types import (
    Kind,
    Recurrence,
    ScheduleDefinition,
    Status,
    decode_repeat_days,
)

db = SQLAlchemy()


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    tasks = db.relationship('Task', backref='owner', lazy=True, cascade="all, delete-orphan")
    notifications = db.relationship('Notification', backref='user', lazy=True, cascade="all, delete-orphan")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}


class Task(db.Model):
    """
    A task (deadline item) or schedule (Class/Routine/Meeting/Work) definition.
    Dates are stored as 'YYYY-MM-DD' and times as 12-hour 'HH:MM AM/PM' strings;
    repeating rows are expanded into occurrences on read, never stored per day.
    """
    __tablename__ = 'tasks'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    type = db.Column(db.String(20), nullable=False, default='Task')  # Task | Class | Routine | Meeting | Work
    location = db.Column(db.String(200), nullable=True)
    date = db.Column(db.String(10), nullable=False)
    time = db.Column(db.String(8), nullable=False)
    repeat_frequency = db.Column(db.String(10), nullable=False, default='none')  # none | daily | weekly
    repeat_days = db.Column(db.Text, nullable=True)  # JSON array of weekday short names
    start_date = db.Column(db.String(10), nullable=True)
    end_date = db.Column(db.String(10), nullable=True)
    status = db.Column(db.String(20), nullable=False, default='pending')  # pending | done
    notification_id = db.Column(db.String(120), nullable=True)
    missed_notification_id = db.Column(db.String(120), nullable=True)
    reminder_minutes = db.Column(db.Integer, nullable=False, default=5)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_definition(self):
        """Build the engine's view of this row. Raises FormatError on corrupt data."""
        try:
            kind = Kind(self.type)
            recurrence = Recurrence(self.repeat_frequency or 'none')
            status = Status(self.status or 'pending')
        except ValueError as exc:
            raise FormatError(f"Task {self.id}: {exc}") from exc
        parse_time_12h(self.time)
        return ScheduleDefinition(
            id=self.id,
            user_id=self.user_id,
            kind=kind,
            date=parse_date(self.date),
            time=self.time,
            recurrence=recurrence,
            recurrence_days=decode_repeat_days(self.repeat_days) if recurrence is Recurrence.WEEKLY else frozenset(),
            start_date=parse_date(self.start_date) if self.start_date else None,
            end_date=parse_date(self.end_date) if self.end_date else None,
            status=status,
            reminder_minutes=self.reminder_minutes or 0,
            notification_id=self.notification_id,
            missed_notification_id=self.missed_notification_id,
            title=self.title,
            description=self.description,
            location=self.location,
        )

    def to_dict(self):
        try:
            days = json.loads(self.repeat_days) if self.repeat_days else None
        except ValueError:
            days = None
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'type': self.type,
            'location': self.location,
            'date': self.date,
            'time': self.time,
            'repeat_frequency': self.repeat_frequency,
            'repeat_days': days,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'status': self.status,
            'notification_id': self.notification_id,
            'missed_notification_id': self.missed_notification_id,
            'reminder_minutes': self.reminder_minutes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Notification(db.Model):
    """In-app record of a reminder or missed-task alarm that fired."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    task_id = db.Column(db.Integer, nullable=True)
    type = db.Column(db.String(20), nullable=False, default='reminder')  # reminder | missed
    title = db.Column(db.String(200), nullable=False)
    body = db.Column(db.Text, nullable=True)
    payload = db.Column(db.Text, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        try:
            payload = json.loads(self.payload) if self.payload else None
        except ValueError:
            payload = None
        return {
            'id': self.id,
            'user_id': self.user_id,
            'task_id': self.task_id,
            'type': self.type,
            'title': self.title,
            'body': self.body,
            'payload': payload,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
