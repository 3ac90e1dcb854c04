"""
AI gateway interfaces and response parsing.

The core treats every AI service as an opaque asynchronous oracle. This
module defines the three contracts (moderation, planning, chat), the planner
error taxonomy, and the pure parsers that turn raw model text into typed
results.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, List, Sequence

from pulsestudy.data.models import (
    WEEKDAYS,
    ChatChunk,
    ChatMessage,
    FocusSessionHistory,
    ModerationDecision,
    StudySlot,
    Task,
    WeeklyPlan,
)

logger = logging.getLogger(__name__)

MODERATION_ERROR_REASON = "An error occurred during AI evaluation."


# ── Errors ──────────────────────────────────────────────────────────────────

class PlannerError(Exception):
    """A study plan could not be produced. ``str(err)`` is shown to the user."""

    default_message = "The AI planner is unavailable."

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)


class EmptyPlanError(PlannerError):
    default_message = "The AI returned an empty plan. Please try rephrasing your goals."


class MalformedPlanError(PlannerError):
    default_message = "The AI returned a plan in an unexpected format. Please try again."


class PlannerConnectionError(PlannerError):
    default_message = (
        "Could not connect to the AI planner. Please check your connection and try again."
    )


# ── Contracts ───────────────────────────────────────────────────────────────

class ModerationGateway(ABC):
    """Decides whether a task completion deserves XP."""

    @abstractmethod
    async def evaluate(self, task: Task) -> ModerationDecision:
        """Never raises; failures come back as a denial."""


class PlannerGateway(ABC):
    """Builds a weekly study plan."""

    @abstractmethod
    async def generate(
        self,
        history: Sequence[FocusSessionHistory],
        timezone: str,
        availability: str,
        goals: str,
        current_day: str,
    ) -> WeeklyPlan:
        """Raises a PlannerError subclass on failure."""


class ChatGateway(ABC):
    """Streams tutor replies, possibly with task-creation requests."""

    @abstractmethod
    def stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[ChatChunk]:
        """Yield reply fragments for the conversation so far."""


# ── Parsers ─────────────────────────────────────────────────────────────────

def parse_moderation_response(text: str) -> ModerationDecision:
    """Parse ``{"awardXP": bool, "reason": str}``; raises ValueError otherwise."""
    data = json.loads(text.strip())
    if not isinstance(data, dict) or not isinstance(data.get("awardXP"), bool):
        raise ValueError(f"Unexpected moderation payload: {text!r}")
    return ModerationDecision(award_xp=data["awardXP"], reason=str(data.get("reason", "")))


def parse_weekly_plan(text: str) -> WeeklyPlan:
    """
    Turn the planner's JSON into a WeeklyPlan.

    Every weekday is present in the result; days the model left out (or
    sent as an empty list) are rest days.
    """
    text = (text or "").strip()
    if not text:
        raise EmptyPlanError()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Error parsing study plan JSON: %s", exc)
        logger.debug("Received text: %s", text)
        raise MalformedPlanError() from exc
    if not isinstance(data, dict):
        raise MalformedPlanError()

    plan: WeeklyPlan = {}
    for day in WEEKDAYS:
        raw_slots = data.get(day) or []
        if not isinstance(raw_slots, list):
            raise MalformedPlanError()
        slots: List[StudySlot] = []
        for raw in raw_slots:
            if not isinstance(raw, dict) or "time" not in raw or "activity" not in raw:
                raise MalformedPlanError()
            slots.append(StudySlot(time=str(raw["time"]), activity=str(raw["activity"])))
        plan[day] = slots
    return plan


def is_rest_day(plan: WeeklyPlan, day: str) -> bool:
    return not plan.get(day)
