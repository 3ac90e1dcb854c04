"""
System instructions and prompt builders for the AI services.

Builders are pure functions of their inputs so they can be checked without
a network connection.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Sequence

from pulsestudy.data.models import FocusSessionHistory, Task

AI_SYSTEM_INSTRUCTION = (
    "You are an expert academic tutor named 'Pulse'. Your goal is to help students "
    "understand complex topics by providing clear, concise, and friendly explanations. "
    "Break down answers into simple steps. Avoid jargon where possible, or explain it if "
    "necessary. Keep responses helpful and encouraging. When a user asks you to create a "
    "task and does not provide a due date or a priority, you must ask for the missing "
    "information before calling the function. Do not assume defaults for priority or due "
    "date unless the user explicitly asks you to."
)

AI_MODERATOR_SYSTEM_INSTRUCTION = (
    "You are an AI moderator for a productivity app. Your role is to detect and prevent "
    "XP farming by analyzing user task completion patterns. You must be fair and assume "
    "good intent but also be strict about obvious abuse. A user should only get XP for a "
    "legitimate completion. Multiple completions in a very short period (e.g., seconds or "
    "minutes) are highly suspicious. A task being re-completed after a day or more could "
    "be legitimate (e.g., a daily recurring task). Based on the data provided, decide if "
    "the latest completion should be rewarded with XP."
)

PLANNER_SYSTEM_INSTRUCTION = (
    "You are a pragmatic and motivational academic coach. Your goal is to create "
    "realistic and effective study plans."
)

AI_SAMPLE_PROMPTS = (
    "Explain the concept of photosynthesis in simple terms.",
    "Help me brainstorm ideas for a history essay on the Roman Empire.",
    "Give me a 5-step guide to solving quadratic equations.",
    "Summarize the main themes in Shakespeare's 'Macbeth'.",
)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="milliseconds")


def build_moderation_prompt(task: Task, now: datetime) -> str:
    history = json.dumps([_iso(ts) for ts in task.completions])
    created = _iso(task.created) if task.created else "unknown"
    return (
        f'Task Title: "{task.title}"\n'
        f"Task Created: {created}\n"
        f"Completion History (Timestamps): {history}\n"
        f"Current Time: {_iso(now)}\n"
        "\n"
        "Analyze the completion history. Should XP be awarded for the latest completion?"
    )


def _history_json(history: Sequence[FocusSessionHistory]) -> str:
    if not history:
        return "No recent study history."
    return json.dumps([h.to_dict() for h in history])


def build_plan_prompt(
    history: Sequence[FocusSessionHistory],
    timezone: str,
    availability: str,
    goals: str,
    current_day: str,
) -> str:
    return f"""
You are a pragmatic and motivational academic coach. Your goal is to create a realistic and effective weekly study plan.

User's Context:
- Timezone: {timezone}
- General Availability: "{availability}"
- User's Study Goals for the week: "{goals}"
- Recent Study History (last 7-14 days): {_history_json(history)}
- Today is {current_day}.

Your Task:
Create a balanced study timetable for the next 7 days, starting from TODAY, which is {current_day}.
1. Prioritize activities that align with the user's stated goals.
2. The plan should aim to increase the user's total study time by at least 10% compared to their recent average, without causing burnout.
3. Schedule specific, actionable activities related to their goals (e.g., "Review Chapter 3 Calculus for midterm", "Draft English essay outline"). Do not use generic labels like "Study".
4. Incorporate short breaks (5-10 mins) after study sessions.
5. Respect the user's provided availability.
6. The output must be a schedule for the next 7 days, starting with {current_day}.
""".strip()


def with_current_date(text: str, now: datetime) -> str:
    """Prefix a user chat turn with the current date so relative dates resolve."""
    return f'Current date is {_iso(now)}. User\'s request: "{text}"'
