"""
Focus Session Tracker — the Pomodoro countdown and its bookkeeping.

Handles: start, pause, stop, per-second ticks, natural completion, today's
session goal, and the focus history log. The tracker owns no timer; whoever
hosts it calls tick() once per second while it is running.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, List, Optional

from pulsestudy.data.models import FocusSessionHistory, PomodoroSession
from pulsestudy.data.repository import KEY_POMODORO_DURATION, Repository
from pulsestudy.services.gamification import POMODORO_XP_PER_MINUTE, GamificationEngine

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MIN = 25
MAX_DURATION_MIN = 120
DEFAULT_DAILY_GOAL = 4
MIN_HISTORY_SECONDS = 60  # shorter stretches are noise


class TimerState:
    """In-memory state of the countdown."""
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class FocusCompletion:
    """What a naturally finished session paid out."""
    minutes: int
    xp_awarded: int
    session: PomodoroSession
    history_entry: Optional[FocusSessionHistory]


def format_time(seconds: int) -> str:
    """Seconds as MM:SS."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class FocusTracker:
    """
    Pomodoro state machine.

        idle --start--> running --tick*--> (complete) --> idle
                        running --pause/stop--> idle

    Only natural completion awards XP and counts toward the daily goal.
    """

    def __init__(
        self,
        repo: Repository,
        engine: GamificationEngine,
        clock: Callable[[], datetime] = datetime.now,
        on_complete: Optional[Callable[[FocusCompletion], None]] = None,
    ) -> None:
        self.repo = repo
        self.engine = engine
        self.clock = clock
        self.on_complete = on_complete

        duration = int(repo.get(KEY_POMODORO_DURATION, DEFAULT_DURATION_MIN))
        self.duration: int = duration if 0 < duration <= MAX_DURATION_MIN else DEFAULT_DURATION_MIN
        self.seconds_left: int = self.duration * 60
        self.state: str = TimerState.IDLE
        self.started_at: Optional[datetime] = None

        self.session: PomodoroSession = repo.load_pomodoro_session(
            PomodoroSession(date=self._today().isoformat(), total=DEFAULT_DAILY_GOAL, completed=0)
        )
        self.history: List[FocusSessionHistory] = repo.load_focus_history()
        self.roll_over()

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    # ── Countdown ───────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Start the countdown. Returns False if it was already running."""
        if self.is_running:
            return False
        self.roll_over()
        self.started_at = self.clock()
        self.state = TimerState.RUNNING
        logger.info("Focus session started (%s left).", format_time(self.seconds_left))
        return True

    def tick(self) -> Optional[FocusCompletion]:
        """Advance one second. Returns the completion when the countdown ends."""
        if not self.is_running:
            return None
        if self.seconds_left <= 1:
            return self.complete()
        self.seconds_left -= 1
        return None

    def complete(self) -> Optional[FocusCompletion]:
        """Finish the running session: award XP, count it, log it, reset."""
        if not self.is_running:
            return None
        minutes = self.duration
        xp = minutes * POMODORO_XP_PER_MINUTE
        self.engine.add_focus_minutes(minutes)
        self.engine.add_xp(xp)

        # a run that crossed midnight counts toward the day it finished on
        self.roll_over()
        self.session.completed = min(self.session.total, self.session.completed + 1)
        self.repo.save_pomodoro_session(self.session)

        entry = self._leave_running()
        self.seconds_left = self.duration * 60
        result = FocusCompletion(
            minutes=minutes,
            xp_awarded=xp,
            session=replace(self.session),
            history_entry=entry,
        )
        logger.info(
            "Focus session complete: +%d XP, %d/%d today.",
            xp, self.session.completed, self.session.total,
        )
        if self.on_complete:
            self.on_complete(result)
        return result

    def pause(self) -> Optional[FocusSessionHistory]:
        """Stop counting but keep the remaining time."""
        if not self.is_running:
            return None
        return self._leave_running()

    def stop(self) -> Optional[FocusSessionHistory]:
        """Abandon the current run and reset the countdown."""
        entry = self._leave_running() if self.is_running else None
        self.seconds_left = self.duration * 60
        return entry

    # ── Settings ────────────────────────────────────────────────────────────

    def change_duration(self, minutes: int) -> bool:
        """Set the session length. Ignored while running or outside 1..120."""
        if self.is_running:
            return False
        if not 0 < minutes <= MAX_DURATION_MIN:
            return False
        self.duration = int(minutes)
        self.repo.set(KEY_POMODORO_DURATION, self.duration)
        self.seconds_left = self.duration * 60
        return True

    def set_goal(self, delta: int) -> PomodoroSession:
        """Adjust today's target by ``delta`` sessions (never below one)."""
        self.roll_over()
        self.session.total = max(1, self.session.total + delta)
        self.session.completed = min(self.session.completed, self.session.total)
        self.repo.save_pomodoro_session(self.session)
        return self.session

    def roll_over(self, today: Optional[date] = None) -> bool:
        """Start a fresh daily session if the stored one is from another day."""
        today_str = (today or self._today()).isoformat()
        if self.session.date == today_str:
            return False
        logger.info("New day %s: resetting Pomodoro count (was %s).", today_str, self.session.date)
        self.session = PomodoroSession(date=today_str, total=self.session.total, completed=0)
        self.repo.save_pomodoro_session(self.session)
        return True

    # ── Helpers ─────────────────────────────────────────────────────────────

    def elapsed_seconds(self) -> float:
        if not self.is_running or self.started_at is None:
            return 0.0
        return (self.clock() - self.started_at).total_seconds()

    def _today(self) -> date:
        return self.clock().date()

    def _leave_running(self) -> Optional[FocusSessionHistory]:
        """Running → idle, logging the stretch if it beat the noise threshold."""
        end = self.clock()
        start = self.started_at
        self.state = TimerState.IDLE
        self.started_at = None
        if start is None or (end - start).total_seconds() <= MIN_HISTORY_SECONDS:
            return None
        entry = FocusSessionHistory(date=start.date().isoformat(), start_time=start, end_time=end)
        self.history.append(entry)
        self.repo.save_focus_history(self.history)
        return entry


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The Pomodoro timer as a two-state machine (idle, running) plus the two
#   records it owns: today's goal counter and the focus history log.
#
# Key design decisions:
#   - No timer inside. tick() is called by the host (a QTimer in the app,
#     a plain loop in tests). That makes orphaned timers impossible here and
#     lets tests run a 25-minute session in microseconds.
#   - clock is injected for the same reason.
#   - Only complete() pays XP or bumps the daily count. pause/stop log the
#     time (if > 60 s) but award nothing.
#
# Data flow:
#   start() → tick() x N → complete() → engine.add_xp(duration)
#                                     → session.completed += 1 (capped)
#                                     → history.append(entry)
#
# Interviewer-friendly talking points:
#   1. start() while running is ignored rather than raising, because a
#      double-click on "Start" is not an error.
#   2. Daily rollover keeps the user's goal but clears the count.
#   3. The 60-second threshold keeps accidental start/stop clicks out of
#      the stats.
