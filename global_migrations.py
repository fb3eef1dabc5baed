"""
Idempotent upgrades for existing planner databases.

Run when upgrading an existing deployment:
    python global_migrations.py [path/to/planner.db]

Updates:
- Ensure users has name/email/password_hash/created_at
- Ensure tasks has every recurrence/reminder column (repeat_frequency, repeat_days,
  start_date, end_date, notification_id, missed_notification_id, reminder_minutes)
- Normalize NULL repeat_frequency/status/reminder_minutes and drop repeat_days on
  non-weekly rows
- Ensure notification table exists
- Report rows whose date/time strings no longer parse
"""
import sqlite3
import sys
from pathlib import Path

from calendar_math import FormatError, parse_date, parse_time_12h
from schedule_types import decode_repeat_days

DB_PATH = Path("instance") / "planner.db"


def table_exists(cur, name: str) -> bool:
    cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (name,))
    return cur.fetchone() is not None


def column_exists(cur, table: str, column: str) -> bool:
    cur.execute(f"PRAGMA table_info({table})")
    return any(row[1] == column for row in cur.fetchall())


def add_column(cur, table: str, column: str, col_type: str, default_sql: str | None = None):
    if column_exists(cur, table, column):
        print(f"[skip] {table}.{column} exists")
        return
    cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}")
    if default_sql is not None:
        cur.execute(f"UPDATE {table} SET {column} = {default_sql} WHERE {column} IS NULL")
    print(f"[add] {table}.{column}")


def ensure_users(cur):
    if not table_exists(cur, "users"):
        print("[warn] users missing; start the app once to create the baseline schema")
        return
    add_column(cur, "users", "name", "VARCHAR(120) NOT NULL DEFAULT ''")
    add_column(cur, "users", "password_hash", "VARCHAR(200) NOT NULL DEFAULT ''")
    add_column(cur, "users", "created_at", "TIMESTAMP")


def ensure_tasks(cur):
    if not table_exists(cur, "tasks"):
        print("[warn] tasks missing; start the app once to create the baseline schema")
        return
    add_column(cur, "tasks", "description", "TEXT")
    add_column(cur, "tasks", "location", "VARCHAR(200)")
    add_column(cur, "tasks", "repeat_frequency", "VARCHAR(10) DEFAULT 'none'", default_sql="'none'")
    add_column(cur, "tasks", "repeat_days", "TEXT")
    add_column(cur, "tasks", "start_date", "VARCHAR(10)")
    add_column(cur, "tasks", "end_date", "VARCHAR(10)")
    add_column(cur, "tasks", "status", "VARCHAR(20) DEFAULT 'pending'", default_sql="'pending'")
    add_column(cur, "tasks", "notification_id", "VARCHAR(120)")
    add_column(cur, "tasks", "missed_notification_id", "VARCHAR(120)")
    add_column(cur, "tasks", "reminder_minutes", "INTEGER DEFAULT 5", default_sql="5")
    add_column(cur, "tasks", "created_at", "TIMESTAMP")
    add_column(cur, "tasks", "updated_at", "TIMESTAMP")

    cur.execute("UPDATE tasks SET repeat_frequency='none' WHERE repeat_frequency IS NULL OR repeat_frequency=''")
    cur.execute("UPDATE tasks SET status='pending' WHERE status IS NULL OR status=''")
    cur.execute("UPDATE tasks SET reminder_minutes=5 WHERE reminder_minutes IS NULL")
    cur.execute("UPDATE tasks SET repeat_days=NULL WHERE repeat_frequency != 'weekly'")


def ensure_notifications(cur):
    if not table_exists(cur, "notification"):
        cur.execute(
            """
            CREATE TABLE notification (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id INTEGER NOT NULL,
                task_id INTEGER,
                type VARCHAR(20) NOT NULL DEFAULT 'reminder',
                title VARCHAR(200) NOT NULL,
                body TEXT,
                payload TEXT,
                read_at TIMESTAMP,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        print("[add] notification table created")
        return
    add_column(cur, "notification", "task_id", "INTEGER")
    add_column(cur, "notification", "payload", "TEXT")
    add_column(cur, "notification", "read_at", "TIMESTAMP")


def find_corrupt_tasks(cur):
    """Return [(id, reason)] for rows the planner will skip when expanding."""
    if not table_exists(cur, "tasks"):
        return []
    cur.execute("SELECT id, date, time, start_date, end_date, repeat_frequency, repeat_days FROM tasks")
    bad = []
    for task_id, day, at, start, end, freq, days in cur.fetchall():
        try:
            parse_date(day)
            parse_time_12h(at)
            if start:
                parse_date(start)
            if end:
                parse_date(end)
            if freq == "weekly":
                decode_repeat_days(days)
        except FormatError as exc:
            bad.append((task_id, str(exc)))
    return bad


def main(db_path=None):
    path = Path(db_path) if db_path else DB_PATH
    if not path.exists():
        print("Database not found. Start the app once to create it.")
        return
    conn = sqlite3.connect(path)
    cur = conn.cursor()
    try:
        ensure_users(cur)
        ensure_tasks(cur)
        ensure_notifications(cur)
        conn.commit()
        for task_id, reason in find_corrupt_tasks(cur):
            print(f"[warn] task {task_id}: {reason}")
        print("Global migrations complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main(sys.argv[1] if len(sys.argv) > 1 else None)
