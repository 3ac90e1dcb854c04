"""
Runtime configuration.

Everything tunable comes from the environment so the API key never lands in
code or in the store.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pulsestudy.data.database import DEFAULT_DB_PATH

DEFAULT_CHAT_MODEL = "gemini-2.5-flash"
DEFAULT_MODERATION_MODEL = "gemini-2.5-flash"
DEFAULT_PLANNER_MODEL = "gemini-2.5-pro"


@dataclass
class Settings:
    api_key: Optional[str] = None
    db_path: Path = DEFAULT_DB_PATH
    chat_model: str = DEFAULT_CHAT_MODEL
    moderation_model: str = DEFAULT_MODERATION_MODEL
    planner_model: str = DEFAULT_PLANNER_MODEL
    log_level: str = "INFO"
    log_file: str = "pulsestudy.log"

    @property
    def ai_enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None,
            db_path=Path(os.getenv("PULSESTUDY_DB", str(DEFAULT_DB_PATH))),
            chat_model=os.getenv("PULSESTUDY_CHAT_MODEL", DEFAULT_CHAT_MODEL),
            moderation_model=os.getenv("PULSESTUDY_MODERATION_MODEL", DEFAULT_MODERATION_MODEL),
            planner_model=os.getenv("PULSESTUDY_PLANNER_MODEL", DEFAULT_PLANNER_MODEL),
            log_level=os.getenv("PULSESTUDY_LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("PULSESTUDY_LOG_FILE", "pulsestudy.log"),
        )
