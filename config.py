import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name, default):
    try:
        return int(os.environ.get(name, default))
    except (TypeError, ValueError):
        return default


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///planner.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    PERMANENT_SESSION_LIFETIME = 365 * 24 * 60 * 60  # 1 year in seconds
    DEFAULT_TIMEZONE = os.environ.get('DEFAULT_TIMEZONE', 'UTC')
    ENABLE_REMINDER_JOBS = os.environ.get('ENABLE_REMINDER_JOBS', '1') == '1'
    DEFAULT_REMINDER_MINUTES = _env_int('DEFAULT_REMINDER_MINUTES', 5)
    PLANNER_DEFAULT_RANGE_DAYS = _env_int('PLANNER_DEFAULT_RANGE_DAYS', 7)
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


def configure_logging(level=None):
    level_name = str(level or Config.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
