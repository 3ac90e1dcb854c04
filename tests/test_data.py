"""Unit tests for the data layer (database, repository, models)."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from pulsestudy.data.database import Database
from pulsestudy.data.models import (
    FocusSessionHistory,
    Note,
    NoteFile,
    PomodoroSession,
    Priority,
    Task,
)
from pulsestudy.data.repository import KEY_TASKS, KEY_XP, Repository


class TestDatabase:
    def test_connect_creates_schema(self):
        db = Database(db_path=Path(":memory:"))
        conn = db.connect()
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        assert "kv_store" in tables
        assert db.connect() is conn
        db.close()
        assert db.conn is None


class TestSlots:
    def test_missing_key_returns_default(self, repo: Repository):
        assert repo.get("nope") is None
        assert repo.get("nope", 42) == 42

    def test_set_then_get(self, repo: Repository):
        repo.set(KEY_XP, 120)
        assert repo.get(KEY_XP, 0) == 120
        repo.set(KEY_XP, 135)
        assert repo.get(KEY_XP, 0) == 135
        assert repo.keys() == [KEY_XP]

    def test_corrupt_value_falls_back_to_default(self, repo: Repository):
        repo.conn.execute("INSERT INTO kv_store (key, value) VALUES (?, ?)", ("broken", "{not json"))
        repo.conn.commit()
        assert repo.get("broken", []) == []

    def test_delete_and_reset(self, repo: Repository):
        repo.set("a", 1)
        repo.set("b", 2)
        repo.delete("a")
        assert repo.keys() == ["b"]
        repo.reset_all_data()
        assert repo.keys() == []


class TestTaskRecords:
    def test_legacy_task_migrates_defaults(self, repo: Repository):
        repo.conn.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?)",
            (KEY_TASKS, json.dumps([{"id": "1", "title": "Old", "done": True,
                                     "created": "2023-05-01T10:00:00"}])),
        )
        repo.conn.commit()
        [task] = repo.load_tasks()
        assert task.priority == Priority.MEDIUM
        assert task.completions == []
        assert task.done is True

    def test_save_and_load_tasks(self, repo: Repository):
        due = datetime(2024, 2, 1, 23, 59)
        done_at = datetime(2024, 1, 2, 8, 30)
        repo.save_tasks([Task(id="a", title="Read", done=True, created=datetime(2024, 1, 1),
                              priority=Priority.HIGH, due_date=due, completions=[done_at])])
        [loaded] = repo.load_tasks()
        assert loaded.due_date == due
        assert loaded.completions == [done_at]
        assert repo.get(KEY_TASKS)[0]["dueDate"] == due.isoformat()


class TestOtherRecords:
    def test_note_with_attachment(self, repo: Repository):
        note = Note(id="n1", title="Cells", body="Mitochondria",
                    created=datetime(2024, 1, 1),
                    file=NoteFile(name="cell.png", mime_type="image/png", data_url="data:image/png;base64,AAAA"))
        repo.save_notes([note])
        [loaded] = repo.load_notes()
        assert loaded.file.is_image
        assert loaded.file.name == "cell.png"

    def test_pomodoro_session_default_when_missing(self, repo: Repository):
        default = PomodoroSession(date="2024-01-01", total=4, completed=0)
        assert repo.load_pomodoro_session(default) is default

    def test_pomodoro_session_clamped_on_load(self):
        session = PomodoroSession.from_dict({"date": "2024-01-01", "total": 0, "completed": 5})
        assert session.total == 1
        assert session.completed == 1

    def test_focus_history_duration(self, repo: Repository):
        entry = FocusSessionHistory(date="2024-01-01",
                                    start_time=datetime(2024, 1, 1, 9, 0),
                                    end_time=datetime(2024, 1, 1, 9, 25))
        repo.save_focus_history([entry])
        [loaded] = repo.load_focus_history()
        assert loaded.duration_minutes == pytest.approx(25.0)
