"""
Repository — the single place where SQL lives.

The dashboard persists a handful of named JSON slots (tasks, notes, XP, ...).
Every other module goes through ``get``/``set`` or the typed helpers below,
never through raw SQL.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, List

from .models import FocusSessionHistory, Note, PomodoroSession, Task

logger = logging.getLogger(__name__)

# Slot names (kept stable so existing stores keep loading)
KEY_TASKS = "ps_tasks_v3"
KEY_NOTES = "ps_notes_v3"
KEY_FOCUS_MINUTES = "ps_focus_v3"
KEY_FOCUS_HISTORY = "ps_focus_history_v1"
KEY_XP = "ps_xp_v3"
KEY_USER_NAME = "ps_userName"
KEY_THEME = "ps_theme_v1"
KEY_POMODORO_DURATION = "ps_pomo_duration_v1"
KEY_POMODORO_SESSION = "ps_pomo_session_v2"


class Repository:
    """Key-value data-access layer wrapping a sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    # ── Raw slots ───────────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Stored value for %r is not valid JSON; using default.", key)
            return default

    def set(self, key: str, value: Any) -> None:
        self.conn.execute(
            """INSERT INTO kv_store (key, value, updated_at)
               VALUES (?, ?, datetime('now'))
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value, updated_at = excluded.updated_at""",
            (key, json.dumps(value)),
        )
        self.conn.commit()

    def delete(self, key: str) -> None:
        self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()

    def keys(self) -> List[str]:
        rows = self.conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [r["key"] for r in rows]

    # ── Tasks ───────────────────────────────────────────────────────────────

    def load_tasks(self) -> List[Task]:
        return [Task.from_dict(d) for d in self.get(KEY_TASKS, [])]

    def save_tasks(self, tasks: List[Task]) -> None:
        self.set(KEY_TASKS, [t.to_dict() for t in tasks])

    # ── Notes ───────────────────────────────────────────────────────────────

    def load_notes(self) -> List[Note]:
        return [Note.from_dict(d) for d in self.get(KEY_NOTES, [])]

    def save_notes(self, notes: List[Note]) -> None:
        self.set(KEY_NOTES, [n.to_dict() for n in notes])

    # ── Focus ───────────────────────────────────────────────────────────────

    def load_focus_history(self) -> List[FocusSessionHistory]:
        return [FocusSessionHistory.from_dict(d) for d in self.get(KEY_FOCUS_HISTORY, [])]

    def save_focus_history(self, history: List[FocusSessionHistory]) -> None:
        self.set(KEY_FOCUS_HISTORY, [h.to_dict() for h in history])

    def load_pomodoro_session(self, default: PomodoroSession) -> PomodoroSession:
        data = self.get(KEY_POMODORO_SESSION)
        return PomodoroSession.from_dict(data) if data else default

    def save_pomodoro_session(self, session: PomodoroSession) -> None:
        self.set(KEY_POMODORO_SESSION, session.to_dict())

    # ── Reset ───────────────────────────────────────────────────────────────

    def reset_all_data(self) -> None:
        """Wipe every slot."""
        self.conn.execute("DELETE FROM kv_store")
        self.conn.commit()
        logger.info("All stored data reset.")


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Implements the app's persistent store: string keys holding JSON values,
#   with synchronous write-through (every set() commits immediately).
#
# Key pieces:
#   - get(key, default) / set(key, value): the generic contract every
#     service relies on.
#   - load_*/save_*: typed helpers that convert between dataclasses and the
#     JSON shape kept in the table.
#
# Interviewer-friendly talking points:
#   1. Upsert via ON CONFLICT keeps set() a single statement.
#   2. A corrupt slot degrades to its default instead of crashing startup;
#      the warning in the log is enough to investigate.
