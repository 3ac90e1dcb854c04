"""Unit tests for XP, ranks and the AI rating."""

import math

import pytest

from pulsestudy.data.repository import KEY_FOCUS_MINUTES, KEY_XP
from pulsestudy.services.gamification import (
    RANKS,
    GamificationEngine,
    ai_rating,
    next_rank,
    rank_for,
)


class TestRanks:
    def test_table_is_contiguous_from_zero(self):
        assert RANKS[0].min == 0
        for lower, upper in zip(RANKS, RANKS[1:]):
            assert upper.min == lower.max + 1
        assert math.isinf(RANKS[-1].max)

    @pytest.mark.parametrize("xp,expected", [
        (0, "CALIBRATING"),
        (499, "CALIBRATING"),
        (500, "IRON"),
        (1499, "BRONZE"),
        (2500, "PLATINUM"),
        (5999, "MASTER"),
        (6000, "SPECIAL"),
        (15000, "ELITE"),
        (10_000_000, "ELITE"),
    ])
    def test_rank_for_boundaries(self, xp, expected):
        assert rank_for(xp).name == expected

    def test_every_xp_has_exactly_one_containing_rank(self):
        for xp in range(0, 20001, 7):
            matches = [r for r in RANKS if r.contains(xp)]
            assert len(matches) == 1
            assert rank_for(xp) is matches[0]

    def test_out_of_table_falls_back_to_last_rank(self):
        short_table = RANKS[:2]
        assert rank_for(5000, short_table) is short_table[-1]

    def test_next_rank(self):
        assert next_rank(0).name == "IRON"
        assert next_rank(20000) is None


class TestAIRating:
    def test_floor(self):
        assert ai_rating(0, 0, 0, 0) == 1000

    def test_example_value(self):
        # raw = 20*15 + 300*2 + 8*25 + 400*0.5 = 1300 -> 975
        assert ai_rating(20, 300, 8, 400) == 1975

    def test_saturates_at_ten_thousand(self):
        assert ai_rating(10_000, 10_000, 10_000, 100_000) == 10000

    @pytest.mark.parametrize("position", range(4))
    def test_non_decreasing_in_each_input(self, position):
        base = [3, 40, 2, 150]
        previous = ai_rating(*base)
        for step in range(1, 400, 13):
            args = list(base)
            args[position] += step
            current = ai_rating(*args)
            assert current >= previous
            assert 1000 <= current <= 10000
            assert isinstance(current, int)
            previous = current


class TestEngine:
    def test_add_xp_persists(self, repo, engine):
        assert engine.add_xp(25) == 25
        engine.add_xp(10)
        assert repo.get(KEY_XP) == 35
        assert GamificationEngine(repo).xp == 35

    def test_add_focus_minutes_persists(self, repo, engine):
        engine.add_focus_minutes(25)
        assert repo.get(KEY_FOCUS_MINUTES) == 25
        assert engine.xp == 0

    def test_snapshot_is_frozen(self, engine):
        engine.add_xp(600)
        snap = engine.snapshot()
        assert snap.rank.name == "IRON"
        with pytest.raises(Exception):
            snap.xp = 0

    def test_rating_uses_own_counters(self, engine):
        engine.add_xp(400)
        engine.add_focus_minutes(300)
        assert engine.rating(completed_task_count=20, note_count=8) == 1975
