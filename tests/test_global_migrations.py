import sqlite3

import global_migrations


def _legacy_db(path):
    conn = sqlite3.connect(path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, email VARCHAR(120))")
    conn.execute("CREATE TABLE tasks (id INTEGER PRIMARY KEY, user_id INTEGER, title TEXT, type TEXT, "
                 "date VARCHAR(10), time VARCHAR(8), repeat_frequency VARCHAR(10), repeat_days TEXT)")
    conn.execute("INSERT INTO tasks VALUES (1, 1, 'Essay', 'Task', '2024-03-01', '09:00 AM', NULL, '[\"Mon\"]')")
    conn.execute("INSERT INTO tasks VALUES (2, 1, 'Gym', 'Routine', '2024-03-01', '6pm', 'weekly', '[\"Mon\"]')")
    conn.commit()
    return conn


def test_adds_columns_and_normalizes_rows(tmp_path):
    db_file = tmp_path / "planner.db"
    _legacy_db(db_file).close()

    global_migrations.main(db_file)

    conn = sqlite3.connect(db_file)
    cur = conn.cursor()
    assert global_migrations.column_exists(cur, "tasks", "missed_notification_id")
    assert global_migrations.column_exists(cur, "users", "password_hash")
    assert global_migrations.table_exists(cur, "notification")
    row = cur.execute("SELECT repeat_frequency, repeat_days, status, reminder_minutes FROM tasks WHERE id=1").fetchone()
    assert row == ("none", None, "pending", 5)
    conn.close()


def test_is_idempotent(tmp_path, capsys):
    db_file = tmp_path / "planner.db"
    _legacy_db(db_file).close()
    global_migrations.main(db_file)
    capsys.readouterr()

    global_migrations.main(db_file)
    out = capsys.readouterr().out
    assert "[add]" not in out
    assert "Global migrations complete." in out


def test_reports_corrupt_rows(tmp_path):
    conn = _legacy_db(tmp_path / "planner.db")
    cur = conn.cursor()
    global_migrations.ensure_tasks(cur)
    bad = global_migrations.find_corrupt_tasks(cur)
    assert [task_id for task_id, _ in bad] == [2]
    conn.close()


def test_missing_database(tmp_path, capsys):
    global_migrations.main(tmp_path / "nope.db")
    assert "Database not found" in capsys.readouterr().out
