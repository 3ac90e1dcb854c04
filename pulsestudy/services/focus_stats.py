"""
Focus statistics — aggregates over the focus history for the stats view
and the study planner.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pulsestudy.data.models import FocusSessionHistory

PLANNER_HISTORY_LIMIT = 20


def _minutes(history: Sequence[FocusSessionHistory]) -> np.ndarray:
    return np.array([h.duration_minutes for h in history], dtype=float)


def total_focus_minutes(history: Sequence[FocusSessionHistory]) -> float:
    if not history:
        return 0.0
    return float(np.sum(_minutes(history)))


def average_daily_minutes(history: Sequence[FocusSessionHistory]) -> float:
    """Total focused minutes divided by the number of distinct days."""
    days = {h.date for h in history}
    if not days:
        return 0.0
    return total_focus_minutes(history) / len(days)


def daily_minutes(
    history: Sequence[FocusSessionHistory],
    days: int = 7,
    today: Optional[date] = None,
) -> List[Tuple[date, float]]:
    """Minutes per day for the last ``days`` days, oldest first."""
    today = today or date.today()
    window = [today - timedelta(days=i) for i in reversed(range(days))]
    if not history:
        return [(d, 0.0) for d in window]

    labels = np.array([h.date for h in history])
    minutes = _minutes(history)
    return [
        (d, float(np.sum(minutes[labels == d.isoformat()])))
        for d in window
    ]


def longest_session_minutes(history: Sequence[FocusSessionHistory]) -> float:
    if not history:
        return 0.0
    return float(np.max(_minutes(history)))


def recent_history(
    history: Sequence[FocusSessionHistory],
    limit: int = PLANNER_HISTORY_LIMIT,
) -> List[FocusSessionHistory]:
    """The most recent entries, in chronological order."""
    return list(history[-limit:]) if limit > 0 else []
