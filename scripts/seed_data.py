"""
Seed Data Generator — creates realistic fake data for development and testing.

Run: python scripts/seed_data.py
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pulsestudy.data.database import Database
from pulsestudy.data.models import FocusSessionHistory, Priority
from pulsestudy.data.repository import Repository
from pulsestudy.services.dashboard import Dashboard


def seed(days: int = 14) -> None:
    db = Database()
    db.connect()
    repo = Repository(db.conn)
    dash = Dashboard(repo)

    # ── Tasks ───────────────────────────────────────────────────────────
    titles = [
        "Review Chapter 3 Calculus", "Draft English essay outline",
        "Watch 2 history lectures", "Linear Algebra problem set",
        "Flashcards: Spanish verbs", "Lab report: titration",
    ]
    now = datetime.now()
    for title in titles:
        due = now + timedelta(days=random.randint(0, 10)) if random.random() < 0.7 else None
        task = dash.ledger.add(title, random.choice(Priority.ALL), due)
        if random.random() < 0.4:
            # No moderator here, so seeded completions earn no XP
            dash.ledger.toggle(task.id)

    # ── Notes ───────────────────────────────────────────────────────────
    dash.notebook.create("Photosynthesis", "Light reactions → ATP + NADPH; Calvin cycle fixes CO2.")
    dash.notebook.create("Quadratics", "x = (-b ± sqrt(b² - 4ac)) / 2a")

    # ── Focus history ───────────────────────────────────────────────────
    history = list(dash.focus.history)
    base = now - timedelta(days=days)
    for i in range(days):
        for _ in range(random.randint(0, 3)):
            start = base + timedelta(days=i, hours=random.randint(8, 20),
                                     minutes=random.randint(0, 59))
            end = start + timedelta(minutes=random.choice([15, 25, 25, 45, 50]))
            history.append(FocusSessionHistory(
                date=start.date().isoformat(), start_time=start, end_time=end,
            ))
    history.sort(key=lambda h: h.start_time)
    repo.save_focus_history(history)

    db.close()
    print(f"Seeded {len(titles)} tasks, 2 notes and {len(history)} focus sessions.")


if __name__ == "__main__":
    seed()
