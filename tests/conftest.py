import os

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ['ENABLE_REMINDER_JOBS'] = '0'

import pytest
from apscheduler.jobstores.base import JobLookupError

import app as app_module
from notification_service import ReminderNotifier


class FakeScheduler:
    """Records jobs instead of running them."""

    def __init__(self):
        self.jobs = {}
        self.running = False

    def add_job(self, func, trigger, run_date=None, args=None, id=None, replace_existing=False):
        self.jobs[id] = {'func': func, 'trigger': trigger, 'run_date': run_date, 'args': args or []}

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def start(self):
        self.running = True

    def shutdown(self, wait=True):
        self.running = False


@pytest.fixture
def fake_scheduler():
    return FakeScheduler()


@pytest.fixture
def app(fake_scheduler, monkeypatch):
    flask_app = app_module.app
    flask_app.config.update(TESTING=True, DEFAULT_TIMEZONE='UTC')
    notifier = ReminderNotifier(scheduler=fake_scheduler, timezone='UTC', deliver=app_module._deliver)
    monkeypatch.setattr(app_module, 'notifier', notifier)
    with flask_app.app_context():
        app_module.db.drop_all()
        app_module.db.create_all()
        yield flask_app
        app_module.db.session.remove()
        app_module.db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    return app_module.storage.insert_user('Ada', 'ada@example.com', 'secret123')


@pytest.fixture
def auth_headers(user):
    return {'X-User-Id': str(user.id)}


@pytest.fixture
def freeze_now(monkeypatch):
    """Pin the app's notion of 'now' to a fixed local datetime."""
    def _freeze(value):
        monkeypatch.setattr(app_module, '_now_local', lambda: value)
        return value
    return _freeze
