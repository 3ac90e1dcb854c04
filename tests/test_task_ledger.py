"""Unit tests for the task ledger and its moderation flow."""

import asyncio
from datetime import date, datetime, timedelta

import pytest

from pulsestudy.ai.gateways import ModerationGateway
from pulsestudy.data.models import ModerationDecision, Priority, Task
from pulsestudy.services.task_ledger import (
    TaskLedger,
    due_date_options,
    filter_and_sort_tasks,
    format_due_date,
    is_overdue,
)


class FakeModerator(ModerationGateway):
    def __init__(self, decision=None, error=None):
        self.decision = decision or ModerationDecision(True, "Looks legitimate.")
        self.error = error
        self.calls = []

    async def evaluate(self, task):
        self.calls.append(task)
        if self.error:
            raise self.error
        return self.decision


class GatedModerator(ModerationGateway):
    """Holds every answer until release is set."""

    def __init__(self):
        self.release = None

    async def evaluate(self, task):
        await self.release.wait()
        return ModerationDecision(True, "ok")


@pytest.fixture
def ledger(repo, engine, clock):
    return TaskLedger(repo, engine, clock=clock)


def _complete_with(ledger, task_id):
    async def scenario():
        ledger.toggle(task_id)
        await ledger.drain()
    asyncio.run(scenario())


class TestCrud:
    def test_add_inserts_at_head(self, ledger, clock):
        first = ledger.add("Read chapter 1")
        clock.advance(minutes=1)
        second = ledger.add("  Read chapter 2  ", Priority.HIGH)
        assert [t.id for t in ledger.tasks] == [second.id, first.id]
        assert second.title == "Read chapter 2"
        assert second.done is False
        assert second.completions == []
        assert second.created == clock.now

    def test_blank_title_is_ignored(self, ledger):
        assert ledger.add("   ") is None
        assert ledger.tasks == []

    def test_ids_are_unique(self, ledger):
        ids = {ledger.add(f"t{i}").id for i in range(50)}
        assert len(ids) == 50

    def test_remove_and_unknown_ids(self, ledger, repo):
        task = ledger.add("Temp")
        ledger.remove("missing")
        assert ledger.toggle("missing") is None
        ledger.remove(task.id)
        assert ledger.tasks == []
        assert repo.load_tasks() == []

    def test_set_priority(self, ledger):
        task = ledger.add("Essay")
        ledger.set_priority(task.id, Priority.LOW)
        assert ledger.get(task.id).priority == Priority.LOW
        assert ledger.set_priority(task.id, "urgent") is None
        assert ledger.get(task.id).priority == Priority.LOW

    def test_changes_are_persisted(self, repo, engine, ledger):
        task = ledger.add("Persist me", Priority.HIGH)
        reloaded = TaskLedger(repo, engine)
        assert reloaded.get(task.id).priority == Priority.HIGH


class TestToggle:
    def test_history_never_shrinks(self, ledger, clock):
        task = ledger.add("Flashcards")
        ledger.toggle(task.id)
        clock.advance(seconds=5)
        ledger.toggle(task.id)
        assert task.done is False
        assert task.completions == [datetime(2024, 1, 1, 9, 0, 0)]
        clock.advance(days=1)
        ledger.toggle(task.id)
        assert len(task.completions) == 2

    def test_without_moderator_no_xp(self, ledger, engine):
        task = ledger.add("Quiz")
        _complete_with(ledger, task.id)
        assert engine.xp == 0
        assert ledger.completed_count == 1


class TestModeration:
    def test_approved_completion_awards_xp(self, repo, engine, clock):
        mod = FakeModerator()
        ledger = TaskLedger(repo, engine, moderator=mod, clock=clock)
        task = ledger.add("Lab report")
        _complete_with(ledger, task.id)
        assert engine.xp == 10
        assert mod.calls[0].completions == [clock.now]

    def test_denied_completion_awards_nothing(self, repo, engine, clock):
        ledger = TaskLedger(repo, engine, moderator=FakeModerator(ModerationDecision(False, "farming")),
                            clock=clock)
        task = ledger.add("Lab report")
        _complete_with(ledger, task.id)
        assert engine.xp == 0

    def test_gateway_exception_fails_closed(self, repo, engine, clock):
        ledger = TaskLedger(repo, engine, moderator=FakeModerator(error=RuntimeError("boom")),
                            clock=clock)
        task = ledger.add("Lab report")
        _complete_with(ledger, task.id)
        assert engine.xp == 0

    def test_uncompleting_does_not_evaluate_or_revoke(self, repo, engine, clock):
        mod = FakeModerator()
        ledger = TaskLedger(repo, engine, moderator=mod, clock=clock)
        task = ledger.add("Lab report")
        _complete_with(ledger, task.id)
        _complete_with(ledger, task.id)  # back to not done
        assert len(mod.calls) == 1
        assert engine.xp == 10

    def test_result_for_deleted_task_is_discarded(self, repo, engine, clock):
        mod = GatedModerator()
        ledger = TaskLedger(repo, engine, moderator=mod, clock=clock)

        async def scenario():
            mod.release = asyncio.Event()
            task = ledger.add("Vanishing")
            ledger.toggle(task.id)
            ledger.remove(task.id)
            mod.release.set()
            await ledger.drain()

        asyncio.run(scenario())
        assert engine.xp == 0

    def test_late_result_applies_after_untoggle(self, repo, engine, clock):
        mod = GatedModerator()
        ledger = TaskLedger(repo, engine, moderator=mod, clock=clock)

        async def scenario():
            mod.release = asyncio.Event()
            task = ledger.add("Flip-flop")
            ledger.toggle(task.id)
            ledger.toggle(task.id)
            mod.release.set()
            await ledger.drain()

        asyncio.run(scenario())
        assert engine.xp == 10

    def test_no_running_loop_fails_closed(self, repo, engine, clock):
        mod = FakeModerator()
        ledger = TaskLedger(repo, engine, moderator=mod, clock=clock)
        task = ledger.add("Offline")
        ledger.toggle(task.id)
        assert task.done is True
        assert mod.calls == []
        assert engine.xp == 0

    def test_apply_moderation_directly(self, ledger, engine):
        task = ledger.add("Direct")
        assert ledger.apply_moderation(task.id, ModerationDecision(True, "ok")) is True
        assert ledger.apply_moderation("gone", ModerationDecision(True, "ok")) is False
        assert engine.xp == 10


BASE = datetime(2024, 3, 1, 12, 0)


def _task(tid, minutes, priority=Priority.MEDIUM, done=False, due_days=None):
    return Task(
        id=tid, title=tid, done=done, created=BASE + timedelta(minutes=minutes),
        priority=priority,
        due_date=BASE + timedelta(days=due_days) if due_days is not None else None,
    )


class TestFilterAndSort:
    @pytest.fixture
    def tasks(self):
        return [
            _task("a", 0, Priority.LOW, due_days=3),
            _task("b", 1, Priority.HIGH, done=True),
            _task("c", 2, Priority.MEDIUM, due_days=1),
            _task("d", 3, Priority.HIGH),
            _task("e", 4, Priority.LOW, done=True, due_days=1),
        ]

    def test_created_is_newest_first(self, tasks):
        assert [t.id for t in filter_and_sort_tasks(tasks)] == ["e", "d", "c", "b", "a"]

    def test_status_filters(self, tasks):
        assert [t.id for t in filter_and_sort_tasks(tasks, status="done")] == ["e", "b"]
        assert [t.id for t in filter_and_sort_tasks(tasks, status="pending")] == ["d", "c", "a"]

    def test_empty_priority_filter_matches_nothing(self, tasks):
        assert filter_and_sort_tasks(tasks, priorities=[]) == []

    def test_priority_subset(self, tasks):
        result = filter_and_sort_tasks(tasks, priorities={Priority.HIGH})
        assert [t.id for t in result] == ["d", "b"]

    def test_single_priority_string(self, tasks):
        result = filter_and_sort_tasks(tasks, priorities=Priority.HIGH)
        assert [t.id for t in result] == ["d", "b"]

    def test_sort_by_priority_ties_newest_first(self, tasks):
        result = filter_and_sort_tasks(tasks, sort_by="priority")
        assert [t.id for t in result] == ["d", "b", "c", "e", "a"]

    def test_sort_by_due_date_undated_last(self, tasks):
        result = filter_and_sort_tasks(tasks, sort_by="due_date")
        assert [t.id for t in result] == ["e", "c", "a", "d", "b"]

    def test_does_not_mutate_input(self, tasks):
        original = [t.id for t in tasks]
        filter_and_sort_tasks(tasks, sort_by="priority")
        assert [t.id for t in tasks] == original

    def test_unknown_sort_key(self, tasks):
        with pytest.raises(ValueError):
            filter_and_sort_tasks(tasks, sort_by="title")

    def test_ledger_view(self, ledger, clock):
        ledger.add("undated", Priority.LOW)
        clock.advance(minutes=1)
        ledger.add("dated", Priority.LOW, due_date=clock.now + timedelta(days=2))
        assert [t.title for t in ledger.filtered_and_sorted(sort_by="dueDate")] == ["dated", "undated"]


class TestDueDates:
    @pytest.mark.parametrize("offset,label", [
        (0, "Today"),
        (1, "Tomorrow"),
        (3, "in 3 days"),
        (6, "in 6 days"),
        (7, "Next week"),
        (13, "Next week"),
    ])
    def test_relative_labels(self, offset, label):
        today = date(2024, 3, 1)
        due = datetime(2024, 3, 1, 18, 0) + timedelta(days=offset)
        assert format_due_date(due, today) == label

    def test_far_and_past_dates_are_absolute(self):
        today = date(2024, 3, 1)
        assert format_due_date(datetime(2024, 4, 20), today) == "Apr 20"
        assert format_due_date(datetime(2024, 2, 5), today) == "Feb 5"

    def test_is_overdue(self):
        now = datetime(2024, 3, 5, 10, 0)
        late = _task("late", 0, due_days=1)
        assert is_overdue(late, now)
        late.done = True
        assert not is_overdue(late, now)
        assert not is_overdue(_task("none", 0), now)

    def test_due_date_options(self):
        # 2024-03-06 is a Wednesday
        options = dict(due_date_options(datetime(2024, 3, 6, 14, 30)))
        assert options["Today"].date() == date(2024, 3, 6)
        assert options["Tomorrow"].date() == date(2024, 3, 7)
        assert options["This Weekend"].date() == date(2024, 3, 9)
        assert options["Next Week"].date() == date(2024, 3, 13)
        assert options["Today"].hour == 23 and options["Today"].minute == 59
