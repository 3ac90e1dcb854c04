"""
Data models for PulseStudy.

Plain dataclasses for everything the dashboard keeps in its key-value store,
plus the small value objects exchanged with the AI gateways. Serialisation to
and from JSON-friendly dicts lives here so the Repository never has to know
field names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple


class Priority:
    """Task priority levels, highest first."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    ALL: Tuple[str, ...] = (HIGH, MEDIUM, LOW)
    ORDER: Dict[str, int] = {HIGH: 0, MEDIUM: 1, LOW: 2}


WEEKDAYS: Tuple[str, ...] = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)


# helpers: ISO round-trip that tolerates missing values
def _dt_out(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _dt_in(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class Task:
    """A to-do item. ``completions`` is append-only history."""
    id: str = ""
    title: str = ""
    done: bool = False
    created: Optional[datetime] = None
    priority: str = Priority.MEDIUM
    due_date: Optional[datetime] = None
    completions: List[datetime] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "done": self.done,
            "created": _dt_out(self.created),
            "priority": self.priority,
            "dueDate": _dt_out(self.due_date),
            "completions": [ts.isoformat() for ts in self.completions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        # Older records predate priority and completion history
        priority = data.get("priority") or Priority.MEDIUM
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            done=bool(data.get("done", False)),
            created=_dt_in(data.get("created")),
            priority=priority if priority in Priority.ALL else Priority.MEDIUM,
            due_date=_dt_in(data.get("dueDate")),
            completions=[datetime.fromisoformat(ts) for ts in data.get("completions") or []],
        )


@dataclass
class NoteFile:
    """An attachment. Content edits happen in the external annotation editor."""
    name: str = ""
    mime_type: str = ""
    data_url: str = ""

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@dataclass
class Note:
    id: str = ""
    title: str = ""
    body: str = ""
    created: Optional[datetime] = None
    file: Optional[NoteFile] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "created": _dt_out(self.created),
            "file": (
                {"name": self.file.name, "type": self.file.mime_type, "dataUrl": self.file.data_url}
                if self.file else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Note":
        raw_file = data.get("file")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            body=data.get("body", ""),
            created=_dt_in(data.get("created")),
            file=NoteFile(
                name=raw_file.get("name", ""),
                mime_type=raw_file.get("type", ""),
                data_url=raw_file.get("dataUrl", ""),
            ) if raw_file else None,
        )


@dataclass(frozen=True)
class Rank:
    """One tier of the rank ladder. Bounds are inclusive."""
    name: str
    min: float
    max: float
    badge_colors: Tuple[str, ...]
    icon: str
    animation_class: Optional[str] = None
    description: Optional[str] = None

    def contains(self, xp: float) -> bool:
        return self.min <= xp <= self.max


@dataclass
class PomodoroSession:
    """Today's Pomodoro goal: ``completed`` out of ``total`` sessions."""
    date: str = ""  # YYYY-MM-DD
    total: int = 4
    completed: int = 0

    def to_dict(self) -> dict:
        return {"date": self.date, "total": self.total, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: dict) -> "PomodoroSession":
        total = max(1, int(data.get("total", 4)))
        return cls(
            date=data.get("date", ""),
            total=total,
            completed=min(total, max(0, int(data.get("completed", 0)))),
        )


@dataclass
class FocusSessionHistory:
    """A stretch of focused time longer than the noise threshold."""
    date: str = ""  # YYYY-MM-DD of start_time
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if not self.start_time or not self.end_time:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "startTime": _dt_out(self.start_time),
            "endTime": _dt_out(self.end_time),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FocusSessionHistory":
        return cls(
            date=data.get("date", ""),
            start_time=_dt_in(data.get("startTime")),
            end_time=_dt_in(data.get("endTime")),
        )


@dataclass(frozen=True)
class ProgressSnapshot:
    """Immutable view of the gamification state handed to readers."""
    xp: int
    focus_minutes: int
    rank: Rank


# ── AI gateway payloads ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ModerationDecision:
    award_xp: bool
    reason: str = ""


@dataclass(frozen=True)
class TaskRequest:
    """A structured "create task" call emitted by the chat model."""
    title: str
    priority: str = Priority.MEDIUM
    due_date: Optional[datetime] = None


@dataclass
class StudySlot:
    time: str = ""  # e.g. "10:00 - 11:00"
    activity: str = ""


# Weekday name -> ordered slots; an empty list is a rest day.
WeeklyPlan = Dict[str, List[StudySlot]]


@dataclass(frozen=True)
class ChatMessage:
    text: str
    sender: str = "user"  # 'user' or 'ai'


@dataclass
class ChatChunk:
    """One increment of a streamed chat reply."""
    text: str = ""
    task_requests: List[TaskRequest] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the shape of everything the dashboard stores or passes around:
#   tasks, notes, the rank ladder entries, today's Pomodoro goal, focus
#   history, and the payloads exchanged with the AI services.
#
# Key classes and why they exist:
#   - Task: completions is an append-only list of timestamps. "done" is just
#     the current checkbox state; the history is what moderation looks at.
#   - Rank: frozen, because the ladder is configuration, not state.
#   - PomodoroSession / FocusSessionHistory: the two records the focus
#     tracker owns. One is a daily counter, the other a log.
#   - ProgressSnapshot: readers get a frozen copy of XP/rank so nothing but
#     the engine can change them.
#
# Data flow:
#   Services build/mutate these → Repository calls to_dict() → JSON in SQLite
#   App start → Repository reads JSON → from_dict() → services
#
# Interviewer-friendly talking points:
#   1. to_dict/from_dict keep the stored JSON keys (dueDate, startTime...)
#      stable even though the Python fields are snake_case.
#   2. Task.from_dict doubles as the migration step for old records that
#      have no priority or completion history.
#   3. Priority uses plain string constants (like SessionState elsewhere)
#      because they go straight into JSON.
