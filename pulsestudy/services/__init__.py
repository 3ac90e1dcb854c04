from .dashboard import Dashboard
from .focus_tracker import FocusTracker, TimerState
from .gamification import GamificationEngine, ai_rating, rank_for
from .notebook import Notebook
from .task_ledger import TaskLedger, filter_and_sort_tasks

__all__ = [
    "Dashboard", "FocusTracker", "GamificationEngine", "Notebook", "TaskLedger",
    "TimerState", "ai_rating", "filter_and_sort_tasks", "rank_for",
]
