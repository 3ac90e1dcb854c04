"""
Dashboard — wires the core services over one Repository.

This is what a presentation layer talks to: it builds the engine, ledger,
notebook and focus tracker, and computes the AI rating from their current
state on every read.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from pulsestudy.data.repository import KEY_THEME, KEY_USER_NAME, Repository
from pulsestudy.services.focus_stats import average_daily_minutes
from pulsestudy.services.focus_tracker import FocusTracker, format_time
from pulsestudy.services.gamification import GamificationEngine, next_rank
from pulsestudy.services.notebook import Notebook
from pulsestudy.services.task_ledger import TaskLedger

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")


class Dashboard:
    """Facade over every core service."""

    def __init__(
        self,
        repo: Repository,
        moderator=None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.engine = GamificationEngine(repo)
        self.ledger = TaskLedger(repo, self.engine, moderator=moderator, clock=clock)
        self.notebook = Notebook(repo, self.engine, clock=clock)
        self.focus = FocusTracker(repo, self.engine, clock=clock)

    # ── Derived values ──────────────────────────────────────────────────────

    def ai_rating(self) -> int:
        return self.engine.rating(self.ledger.completed_count, len(self.notebook))

    def rank(self):
        return self.engine.rank()

    def summary(self) -> dict:
        snap = self.engine.snapshot()
        upcoming = next_rank(snap.xp)
        session = self.focus.session
        history = self.focus.history
        return {
            "user_name": self.user_name,
            "xp": snap.xp,
            "rank": snap.rank.name,
            "next_rank": upcoming.name if upcoming else None,
            "xp_to_next_rank": (upcoming.min - snap.xp) if upcoming else 0,
            "ai_rating": self.ai_rating(),
            "task_count": len(self.ledger.tasks),
            "completed_tasks": self.ledger.completed_count,
            "note_count": len(self.notebook),
            "focus_minutes": snap.focus_minutes,
            "pomodoro": {
                "duration": self.focus.duration,
                "time_left": format_time(self.focus.seconds_left),
                "running": self.focus.is_running,
                "completed": session.completed,
                "total": session.total,
            },
            "avg_daily_focus_minutes": round(average_daily_minutes(history), 1),
        }

    # ── Preferences ─────────────────────────────────────────────────────────

    @property
    def user_name(self) -> str:
        return self.repo.get(KEY_USER_NAME, "")

    def set_user_name(self, name: str) -> None:
        self.repo.set(KEY_USER_NAME, name.strip())

    @property
    def theme(self) -> str:
        return self.repo.get(KEY_THEME, "dark")

    def set_theme(self, theme: str) -> Optional[str]:
        if theme not in THEMES:
            return None
        self.repo.set(KEY_THEME, theme)
        return theme
