"""
Task Ledger — CRUD over the task list plus the filtered/sorted view.

Completing a task never pays out XP directly. The ledger records the
completion, hands a snapshot of the task to the moderation gateway on the
running event loop, and applies whatever comes back through
apply_moderation(), which ignores tasks that have since been deleted.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional, Set

from pulsestudy.data.models import ModerationDecision, Priority, Task
from pulsestudy.data.repository import Repository
from pulsestudy.services.gamification import TASK_COMPLETION_XP, GamificationEngine

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", "pending", "done")
SORT_KEYS = ("created", "priority", "due_date")


def generate_id() -> str:
    """Generate a short unique ID."""
    return uuid.uuid4().hex[:12]


# ── Derived views ───────────────────────────────────────────────────────────

def filter_and_sort_tasks(
    tasks: Iterable[Task],
    status: str = "all",
    priorities: Optional[Iterable[str]] = None,
    sort_by: str = "created",
) -> List[Task]:
    """
    Return a new list of ``tasks`` filtered by status and priority, then sorted.

    ``priorities=None`` means every priority, a bare string is a single
    priority, and an empty collection matches nothing.
    Sorting is stable and every key falls back to newest-first.
    """
    if status not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter: {status!r}")
    if sort_by == "dueDate":
        sort_by = "due_date"
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by!r}")

    if priorities is None:
        priorities = Priority.ALL
    elif isinstance(priorities, str):
        priorities = (priorities,)
    wanted: Set[str] = set(priorities)

    result = [
        t for t in tasks
        if t.priority in wanted
        and (status == "all" or t.done == (status == "done"))
    ]
    result.sort(key=lambda t: t.created or datetime.min, reverse=True)

    if sort_by == "priority":
        result.sort(key=lambda t: Priority.ORDER.get(t.priority, Priority.ORDER[Priority.MEDIUM]))
    elif sort_by == "due_date":
        result.sort(key=lambda t: (t.due_date is None, t.due_date or datetime.min))
    return result


def format_due_date(due: datetime, today: Optional[date] = None) -> str:
    """Human label for a due date relative to ``today``."""
    today = today or date.today()
    diff_days = (due.date() - today).days
    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Tomorrow"
    if 1 < diff_days < 7:
        return f"in {diff_days} days"
    if 7 <= diff_days < 14:
        return "Next week"
    return f"{due:%b} {due.day}"


def is_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now()
    return bool(task.due_date) and not task.done and task.due_date.date() < now.date()


def due_date_options(now: Optional[datetime] = None) -> List[tuple]:
    """Quick-pick due dates, each at the very end of its day."""
    now = now or datetime.now()
    end_of = lambda d: datetime.combine(d, datetime.max.time()).replace(microsecond=999000)
    today = now.date()
    days_until_saturday = (5 - today.weekday()) % 7
    return [
        ("Today", end_of(today)),
        ("Tomorrow", end_of(today + timedelta(days=1))),
        ("This Weekend", end_of(today + timedelta(days=days_until_saturday))),
        ("Next Week", end_of(today + timedelta(days=7))),
    ]


# ── Ledger ──────────────────────────────────────────────────────────────────

class TaskLedger:
    """Owns the task list. Most recent task first."""

    def __init__(
        self,
        repo: Repository,
        engine: GamificationEngine,
        moderator=None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repo = repo
        self.engine = engine
        self.moderator = moderator
        self.clock = clock
        self._tasks: List[Task] = repo.load_tasks()
        self._pending: Set[asyncio.Task] = set()

    # ── Reads ───────────────────────────────────────────────────────────────

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self._tasks if t.done)

    def get(self, task_id: str) -> Optional[Task]:
        for t in self._tasks:
            if t.id == task_id:
                return t
        return None

    def filtered_and_sorted(
        self,
        status: str = "all",
        priorities: Optional[Iterable[str]] = None,
        sort_by: str = "created",
    ) -> List[Task]:
        return filter_and_sort_tasks(self._tasks, status, priorities, sort_by)

    # ── Mutations ───────────────────────────────────────────────────────────

    def add(
        self,
        title: str,
        priority: str = Priority.MEDIUM,
        due_date: Optional[datetime] = None,
    ) -> Optional[Task]:
        title = (title or "").strip()
        if not title:
            return None
        if priority not in Priority.ALL:
            priority = Priority.MEDIUM
        task = Task(
            id=generate_id(),
            title=title,
            done=False,
            created=self.clock(),
            priority=priority,
            due_date=due_date,
        )
        self._tasks.insert(0, task)
        self._save()
        logger.info("Task added: %r (%s)", task.title, task.priority)
        return task

    def toggle(self, task_id: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            return None
        task.done = not task.done
        if task.done:
            task.completions.append(self.clock())
        self._save()
        if task.done:
            self._schedule_moderation(task)
        return task

    def remove(self, task_id: str) -> None:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        if len(self._tasks) != before:
            self._save()

    def set_priority(self, task_id: str, priority: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None or priority not in Priority.ALL:
            return None
        task.priority = priority
        self._save()
        return task

    # ── Moderation ──────────────────────────────────────────────────────────

    def apply_moderation(self, task_id: str, decision: ModerationDecision) -> bool:
        """Apply a moderation result. Returns True if XP was awarded."""
        task = self.get(task_id)
        if task is None:
            logger.info("Moderation result for deleted task %s discarded.", task_id)
            return False
        if not decision.award_xp:
            logger.warning("XP rejected for task %r. Reason: %s", task.title, decision.reason)
            return False
        logger.info("XP approved for task %r. Reason: %s", task.title, decision.reason)
        self.engine.add_xp(TASK_COMPLETION_XP)
        return True

    async def evaluate_completion(self, task: Task) -> bool:
        """Ask the moderator about ``task`` and apply the answer."""
        logger.info("Evaluating completion of %r", task.title)
        try:
            decision = await self.moderator.evaluate(task)
        except Exception:
            logger.exception("Moderation failed for %r; denying XP.", task.title)
            decision = ModerationDecision(False, "An error occurred during AI evaluation.")
        return self.apply_moderation(task.id, decision)

    async def drain(self) -> None:
        """Wait for every in-flight moderation call."""
        pending = list(self._pending)
        if pending:
            await asyncio.gather(*pending)

    def _schedule_moderation(self, task: Task) -> None:
        if self.moderator is None:
            logger.debug("No moderator configured; completion of %r earns no XP.", task.title)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; completion of %r earns no XP.", task.title)
            return
        snapshot = dataclasses.replace(task, completions=list(task.completions))
        future = loop.create_task(self.evaluate_completion(snapshot))
        self._pending.add(future)
        future.add_done_callback(self._pending.discard)

    def _save(self) -> None:
        self.repo.save_tasks(self._tasks)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Keeps the to-do list: add, tick/untick, delete, re-prioritise, and a
#   filter/sort view for display. Ticking a task off starts the XP
#   moderation round-trip.
#
# Key design decisions:
#   - filter_and_sort_tasks() is a module-level pure function. The ledger
#     method just passes its own list in, so the view can never mutate state.
#   - Sorting is two passes over a stable sort: first newest-first, then
#     the chosen key. Ties on the second key keep the newest-first order.
#   - Moderation results are applied by task id through apply_moderation().
#     If the user deleted the task while the request was in flight, the
#     lookup fails and the result is simply dropped.
#
# Data flow:
#   toggle(id) → completions.append(now) → save → create_task(evaluate)
#   ... later ... moderator answers → apply_moderation(id) → engine.add_xp(10)
#
# Interviewer-friendly talking points:
#   1. Fail-closed: if the moderator errors out, no XP. Farming protection
#      matters more than the odd lost reward.
#   2. The moderator sees a copy of the task, so later toggles can't change
#      what is being judged.
#   3. Unticking never revokes XP; the completion history only grows.
