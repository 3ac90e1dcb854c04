"""
Tutor chat — turns streamed replies and "create task" calls into ledger
updates.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Mapping, Optional, Tuple

from pulsestudy.ai.gateways import ChatGateway
from pulsestudy.data.models import ChatMessage, Priority, TaskRequest
from pulsestudy.services.task_ledger import TaskLedger

logger = logging.getLogger(__name__)

CREATE_TASK_FUNCTION = "createTask"


def task_request_from_call(name: str, args: Mapping[str, Any]) -> Optional[TaskRequest]:
    """Build a TaskRequest from a model function call, or None if it isn't one."""
    if name != CREATE_TASK_FUNCTION:
        logger.warning("Ignoring unknown function call %r", name)
        return None
    title = str(args.get("title") or "").strip()
    if not title:
        return None
    priority = str(args.get("priority") or Priority.MEDIUM).lower()
    if priority not in Priority.ALL:
        priority = Priority.MEDIUM
    due_date = None
    due_ms = args.get("dueDate")
    if due_ms is not None:
        try:
            due_date = datetime.fromtimestamp(float(due_ms) / 1000.0)
        except (TypeError, ValueError, OverflowError, OSError):
            logger.warning("Ignoring bad dueDate %r for task %r", due_ms, title)
    return TaskRequest(title=title, priority=priority, due_date=due_date)


def apply_task_requests(ledger: TaskLedger, requests: List[TaskRequest]) -> List[str]:
    """Add each requested task to the ledger; return one confirmation per task added."""
    confirmations: List[str] = []
    for req in requests:
        task = ledger.add(req.title, req.priority, req.due_date)
        if task is not None:
            confirmations.append(f'✅ Task added: "{task.title}"')
    return confirmations


async def collect_reply(
    gateway: ChatGateway, history: List[ChatMessage]
) -> Tuple[str, List[TaskRequest]]:
    """Drain a reply stream into its full text and all task requests."""
    text_parts: List[str] = []
    requests: List[TaskRequest] = []
    async for chunk in gateway.stream(history):
        if chunk.text:
            text_parts.append(chunk.text)
        requests.extend(chunk.task_requests)
    return "".join(text_parts), requests


class ChatSession:
    """One conversation with the tutor, wired to a task ledger."""

    def __init__(self, gateway: ChatGateway, ledger: TaskLedger) -> None:
        self.gateway = gateway
        self.ledger = ledger
        self.messages: List[ChatMessage] = []

    async def send(self, text: str) -> Optional[str]:
        """Send a user turn and return the tutor's reply (None for blank input)."""
        text = text.strip()
        if not text:
            return None
        self.messages.append(ChatMessage(text=text, sender="user"))
        reply, requests = await collect_reply(self.gateway, self.messages)
        confirmations = apply_task_requests(self.ledger, requests)

        reply = reply.strip()
        if confirmations and not reply:
            reply = "\n".join(confirmations)
        elif confirmations:
            reply = reply + "\n\n" + "\n".join(confirmations)
        if reply:
            self.messages.append(ChatMessage(text=reply, sender="ai"))
        return reply
