"""
Gemini-backed gateways.

Without an API key every gateway falls back to a mock mode so the rest of
the app keeps working offline: moderation approves, chat streams a canned
reply, and the planner reports that it is not configured.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import AsyncIterator, Callable, List, Optional, Sequence

import google.generativeai as genai

from pulsestudy.ai.chat import CREATE_TASK_FUNCTION, task_request_from_call
from pulsestudy.ai.gateways import (
    MODERATION_ERROR_REASON,
    ChatGateway,
    ModerationGateway,
    PlannerConnectionError,
    PlannerError,
    PlannerGateway,
    parse_moderation_response,
    parse_weekly_plan,
)
from pulsestudy.ai.prompts import (
    AI_MODERATOR_SYSTEM_INSTRUCTION,
    AI_SYSTEM_INSTRUCTION,
    PLANNER_SYSTEM_INSTRUCTION,
    build_moderation_prompt,
    build_plan_prompt,
    with_current_date,
)
from pulsestudy.config import Settings
from pulsestudy.data.models import (
    WEEKDAYS,
    ChatChunk,
    ChatMessage,
    FocusSessionHistory,
    ModerationDecision,
    Task,
    TaskRequest,
    WeeklyPlan,
)
from pulsestudy.services.focus_stats import recent_history

logger = logging.getLogger(__name__)

Schema = genai.protos.Schema
Type = genai.protos.Type

CHAT_ERROR_REPLY = (
    "Sorry, I encountered an error while trying to answer your question. "
    "Please try again later."
)
MOCK_WORD_DELAY_S = 0.09

MODERATION_SCHEMA = Schema(
    type=Type.OBJECT,
    properties={
        "awardXP": Schema(type=Type.BOOLEAN, description="Whether to award XP for this completion."),
        "reason": Schema(type=Type.STRING, description="A brief explanation for the decision."),
    },
    required=["awardXP", "reason"],
)

_SLOT_SCHEMA = Schema(
    type=Type.OBJECT,
    properties={"time": Schema(type=Type.STRING), "activity": Schema(type=Type.STRING)},
    required=["time", "activity"],
)

PLAN_SCHEMA = Schema(
    type=Type.OBJECT,
    properties={day: Schema(type=Type.ARRAY, items=_SLOT_SCHEMA) for day in WEEKDAYS},
)

CREATE_TASK_TOOL = genai.protos.Tool(
    function_declarations=[
        genai.protos.FunctionDeclaration(
            name=CREATE_TASK_FUNCTION,
            description="Creates a new task in the user's to-do list.",
            parameters=Schema(
                type=Type.OBJECT,
                properties={
                    "title": Schema(
                        type=Type.STRING,
                        description="The title or description of the task.",
                    ),
                    "priority": Schema(
                        type=Type.STRING,
                        description='The priority of the task. Can be "high", "medium", or "low". Defaults to "medium".',
                    ),
                    "dueDate": Schema(
                        type=Type.NUMBER,
                        description=(
                            "The due date for the task, as a UTC timestamp in milliseconds. "
                            'Calculate this based on the current date if relative terms like "tomorrow" are used.'
                        ),
                    ),
                },
                required=["title"],
            ),
        )
    ]
)


def _configure(api_key: Optional[str]) -> bool:
    if not api_key:
        logger.warning("Gemini API key not found. AI features will be mocked.")
        return False
    genai.configure(api_key=api_key)
    return True


def _response_text(response) -> str:
    # .text raises ValueError when the candidate carries no text part
    try:
        return response.text or ""
    except ValueError:
        return ""


# ── Moderation ──────────────────────────────────────────────────────────────

class GeminiModerationGateway(ModerationGateway):

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.clock = clock
        self._model = None
        if _configure(api_key):
            self._model = genai.GenerativeModel(
                model_name, system_instruction=AI_MODERATOR_SYSTEM_INSTRUCTION
            )

    async def evaluate(self, task: Task) -> ModerationDecision:
        if self._model is None:
            return ModerationDecision(True, "Mock mode: API key not present.")
        prompt = build_moderation_prompt(task, self.clock())
        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    response_schema=MODERATION_SCHEMA,
                ),
            )
            return parse_moderation_response(_response_text(response))
        except Exception as exc:
            logger.error("Error evaluating task with Gemini: %s", exc)
            return ModerationDecision(False, MODERATION_ERROR_REASON)


# ── Planner ─────────────────────────────────────────────────────────────────

class GeminiPlannerGateway(PlannerGateway):

    def __init__(self, api_key: Optional[str], model_name: str) -> None:
        self._model = None
        if _configure(api_key):
            self._model = genai.GenerativeModel(
                model_name, system_instruction=PLANNER_SYSTEM_INSTRUCTION
            )

    async def generate(
        self,
        history: Sequence[FocusSessionHistory],
        timezone: str,
        availability: str,
        goals: str,
        current_day: str,
    ) -> WeeklyPlan:
        if self._model is None:
            raise PlannerError("API key not configured.")
        prompt = build_plan_prompt(
            recent_history(list(history)), timezone, availability, goals, current_day
        )
        try:
            response = await self._model.generate_content_async(
                prompt,
                generation_config=genai.GenerationConfig(
                    response_mime_type="application/json",
                    response_schema=PLAN_SCHEMA,
                ),
            )
        except Exception as exc:
            logger.error("Error generating study plan with Gemini: %s", exc)
            raise PlannerConnectionError() from exc
        return parse_weekly_plan(_response_text(response))


# ── Chat ────────────────────────────────────────────────────────────────────

def _chunk_from_response(chunk) -> ChatChunk:
    texts: List[str] = []
    requests: List[TaskRequest] = []
    for candidate in chunk.candidates:
        for part in candidate.content.parts:
            if part.text:
                texts.append(part.text)
            if part.function_call.name:
                req = task_request_from_call(part.function_call.name, dict(part.function_call.args))
                if req is not None:
                    requests.append(req)
    return ChatChunk(text="".join(texts), task_requests=requests)


class GeminiChatGateway(ChatGateway):

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str,
        clock: Callable[[], datetime] = datetime.now,
        mock_delay: float = MOCK_WORD_DELAY_S,
    ) -> None:
        self.clock = clock
        self.mock_delay = mock_delay
        self._model = None
        if _configure(api_key):
            self._model = genai.GenerativeModel(
                model_name,
                system_instruction=AI_SYSTEM_INSTRUCTION,
                tools=[CREATE_TASK_TOOL],
                generation_config=genai.GenerationConfig(temperature=0.7, top_p=0.95),
            )

    async def stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[ChatChunk]:
        if self._model is None:
            async for chunk in self._mock_stream(history):
                yield chunk
            return

        contents = [
            {"role": "user" if m.sender == "user" else "model", "parts": [m.text]}
            for m in history
        ]
        if contents and contents[-1]["role"] == "user":
            contents[-1]["parts"] = [with_current_date(history[-1].text, self.clock())]

        try:
            response = await self._model.generate_content_async(contents, stream=True)
            async for raw in response:
                yield _chunk_from_response(raw)
        except Exception as exc:
            logger.error("Error fetching stream from Gemini API: %s", exc)
            yield ChatChunk(text=CHAT_ERROR_REPLY)

    async def _mock_stream(self, history: Sequence[ChatMessage]) -> AsyncIterator[ChatChunk]:
        asked = history[-1].text[:50] if history else ""
        reply = (
            "This is a mock response as the Gemini API key is not configured. "
            f"You asked about: '{asked}...'"
        )
        for word in reply.split(" "):
            await asyncio.sleep(self.mock_delay)
            yield ChatChunk(text=word + " ")


def build_gateways(settings: Settings):
    """Construct (moderation, planner, chat) gateways from settings."""
    return (
        GeminiModerationGateway(settings.api_key, settings.moderation_model),
        GeminiPlannerGateway(settings.api_key, settings.planner_model),
        GeminiChatGateway(settings.api_key, settings.chat_model),
    )
