from .database import Database
from .models import FocusSessionHistory, Note, NoteFile, PomodoroSession, Priority, Rank, Task
from .repository import Repository

__all__ = [
    "Database", "FocusSessionHistory", "Note", "NoteFile", "PomodoroSession",
    "Priority", "Rank", "Repository", "Task",
]
