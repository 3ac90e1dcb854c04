"""
Notebook — note storage with the first-save XP reward.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from pulsestudy.data.models import Note, NoteFile
from pulsestudy.data.repository import Repository
from pulsestudy.services.gamification import NOTE_CREATION_XP, GamificationEngine
from pulsestudy.services.task_ledger import generate_id

logger = logging.getLogger(__name__)

MAX_ATTACHMENT_BYTES = 50 * 1024 * 1024
UNTITLED = "Untitled"


def attachment_size(file: NoteFile) -> int:
    """Approximate decoded size of a base64 data URL."""
    _, _, payload = file.data_url.partition(",")
    return len(payload) * 3 // 4


class Notebook:
    """Owns the note list, newest first."""

    def __init__(
        self,
        repo: Repository,
        engine: GamificationEngine,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repo = repo
        self.engine = engine
        self.clock = clock
        self._notes: List[Note] = repo.load_notes()

    @property
    def notes(self) -> List[Note]:
        return list(self._notes)

    def __len__(self) -> int:
        return len(self._notes)

    def get(self, note_id: str) -> Optional[Note]:
        for n in self._notes:
            if n.id == note_id:
                return n
        return None

    def create(self, title: str, body: str = "", file: Optional[NoteFile] = None) -> Note:
        return self.save(Note(id=generate_id(), title=title, body=body, file=file))

    def save(self, note: Note) -> Note:
        """Insert a new note (+XP) or replace an existing one in place (no XP)."""
        note.title = note.title.strip() or UNTITLED
        note.body = note.body.strip()
        existing = self.get(note.id)
        if note.file is not None and attachment_size(note.file) > MAX_ATTACHMENT_BYTES:
            logger.warning("Attachment %r exceeds 50MB limit; ignored.", note.file.name)
            # an edit keeps whatever was attached before
            note.file = existing.file if existing is not None else None
        if existing is not None:
            note.created = existing.created
            idx = self._notes.index(existing)
            self._notes[idx] = note
            self._save()
            return note

        note.created = note.created or self.clock()
        self._notes.insert(0, note)
        self._save()
        self.engine.add_xp(NOTE_CREATION_XP)
        logger.info("Note created: %r", note.title)
        return note

    def delete(self, note_id: str) -> None:
        before = len(self._notes)
        self._notes = [n for n in self._notes if n.id != note_id]
        if len(self._notes) != before:
            self._save()

    def attach_file(self, note_id: str, file: NoteFile) -> bool:
        """Replace a note's attachment, e.g. after it was annotated."""
        note = self.get(note_id)
        if note is None:
            return False
        if attachment_size(file) > MAX_ATTACHMENT_BYTES:
            logger.warning("Attachment %r exceeds 50MB limit; ignored.", file.name)
            return False
        note.file = file
        self._save()
        return True

    def _save(self) -> None:
        self.repo.save_notes(self._notes)
