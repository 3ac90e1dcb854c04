"""
PulseStudy — gamified study dashboard.
Entry point: a headless command line over the dashboard core.
"""

import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime
from pathlib import Path

# Ensure the package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent))

from pulsestudy.ai.chat import ChatSession
from pulsestudy.ai.gateways import PlannerError
from pulsestudy.ai.prompts import AI_SAMPLE_PROMPTS
from pulsestudy.ai.gemini import build_gateways
from pulsestudy.config import Settings
from pulsestudy.data.database import Database
from pulsestudy.data.models import WEEKDAYS, Priority
from pulsestudy.data.repository import Repository
from pulsestudy.services.dashboard import Dashboard
from pulsestudy.services.focus_tracker import format_time
from pulsestudy.services.task_ledger import format_due_date, is_overdue


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(settings.log_file, encoding="utf-8"),
        ],
    )


# ── Commands ────────────────────────────────────────────────────────────────

def cmd_status(dash: Dashboard, args) -> int:
    for key, value in dash.summary().items():
        print(f"{key:>24}: {value}")
    return 0


def cmd_add_task(dash: Dashboard, args) -> int:
    due = datetime.strptime(args.due, "%Y-%m-%d").replace(hour=23, minute=59) if args.due else None
    task = dash.ledger.add(args.title, args.priority, due)
    if task is None:
        print("Task title cannot be empty.")
        return 1
    print(f"Added {task.id}: {task.title}")
    return 0


def cmd_tasks(dash: Dashboard, args) -> int:
    for t in dash.ledger.filtered_and_sorted(args.status, args.priority, args.sort):
        mark = "x" if t.done else " "
        due = ""
        if t.due_date:
            now = dash.clock()
            due = "  Overdue!" if is_overdue(t, now) else f"  due {format_due_date(t.due_date, now.date())}"
        print(f"[{mark}] {t.id}  {t.priority:<6} {t.title}{due}")
    return 0


def cmd_complete(dash: Dashboard, args) -> int:
    async def run() -> int:
        task = dash.ledger.toggle(args.task_id)
        if task is None:
            print(f"No task with id {args.task_id}")
            return 1
        print(f"{task.title}: {'done' if task.done else 'not done'}")
        await dash.ledger.drain()
        print(f"XP: {dash.engine.xp}  Rank: {dash.rank().name}")
        return 0

    return asyncio.run(run())


def cmd_focus(dash: Dashboard, args) -> int:
    from PySide6.QtCore import QCoreApplication, QTimer

    from pulsestudy.services.timer_driver import FocusTimerDriver

    if args.minutes and not dash.focus.change_duration(args.minutes):
        print("Duration must be between 1 and 120 minutes.")
        return 1

    app = QCoreApplication.instance() or QCoreApplication(sys.argv)

    def on_tick(seconds_left: int) -> None:
        if seconds_left % 60 == 0:
            print(f"  {format_time(seconds_left)} left")

    def on_complete(result) -> None:
        print(f"Pomodoro session finished! +{result.xp_awarded} XP "
              f"({result.session.completed}/{result.session.total} today)")
        app.quit()

    driver = FocusTimerDriver(dash.focus, on_tick=on_tick, on_complete=on_complete)
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # Let the interpreter run periodically so Ctrl+C is noticed
    wakeup = QTimer()
    wakeup.start(250)
    wakeup.timeout.connect(lambda: None)

    driver.start()
    print(f"Focusing for {dash.focus.duration} min. Ctrl+C to stop.")
    app.exec()
    driver.shutdown()
    return 0


def cmd_plan(dash: Dashboard, args, planner) -> int:
    day = args.day or WEEKDAYS[dash.clock().weekday()]
    try:
        plan = asyncio.run(planner.generate(
            dash.focus.history, args.timezone, args.availability, args.goals, day,
        ))
    except PlannerError as err:
        print(f"Oops, something went wrong. {err}")
        return 1
    for weekday, slots in plan.items():
        print(weekday)
        if not slots:
            print("  Rest day")
        for slot in slots:
            print(f"  {slot.time:<16} {slot.activity}")
    return 0


def cmd_chat(dash: Dashboard, args, chat_gateway) -> int:
    if not args.message:
        print("Try asking:")
        for prompt in AI_SAMPLE_PROMPTS:
            print(f"  - {prompt}")
        return 0
    session = ChatSession(chat_gateway, dash.ledger)
    reply = asyncio.run(session.send(" ".join(args.message)))
    print(reply or "")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pulsestudy", description="PulseStudy dashboard")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show XP, rank, rating and today's Pomodoro count")

    p = sub.add_parser("add-task", help="Add a task")
    p.add_argument("title")
    p.add_argument("--priority", choices=Priority.ALL, default=Priority.MEDIUM)
    p.add_argument("--due", help="Due date as YYYY-MM-DD")

    p = sub.add_parser("tasks", help="List tasks")
    p.add_argument("--status", choices=("all", "pending", "done"), default="all")
    p.add_argument("--priority", choices=Priority.ALL, nargs="*")
    p.add_argument("--sort", choices=("created", "priority", "due_date"), default="created")

    p = sub.add_parser("complete", help="Toggle a task's done state")
    p.add_argument("task_id")

    p = sub.add_parser("focus", help="Run a Pomodoro session in the terminal")
    p.add_argument("--minutes", type=int)

    p = sub.add_parser("plan", help="Generate a weekly study plan")
    p.add_argument("--timezone", required=True)
    p.add_argument("--availability", required=True)
    p.add_argument("--goals", required=True)
    p.add_argument("--day", choices=WEEKDAYS)

    p = sub.add_parser("chat", help="Ask the tutor a question")
    p.add_argument("message", nargs="*")
    return parser


def main(argv=None) -> int:
    settings = Settings.from_env()
    setup_logging(settings)
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    db = Database(settings.db_path)
    db.connect()
    moderator, planner, chat_gateway = build_gateways(settings)
    dash = Dashboard(Repository(db.conn), moderator=moderator)
    logger.info("Running command %s", args.command)
    try:
        if args.command == "status":
            return cmd_status(dash, args)
        if args.command == "add-task":
            return cmd_add_task(dash, args)
        if args.command == "tasks":
            return cmd_tasks(dash, args)
        if args.command == "complete":
            return cmd_complete(dash, args)
        if args.command == "focus":
            return cmd_focus(dash, args)
        if args.command == "plan":
            return cmd_plan(dash, args, planner)
        return cmd_chat(dash, args, chat_gateway)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
