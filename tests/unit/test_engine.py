"""
Unit tests for SchedulingEngine.

Tests:
- Fact grid completeness
- Initial gate and table unlocking
- Weakest-first selection with deterministic tie-breaks
- The pick_fact fallback chain
- Aggregate queries
"""

import json
import random

import pytest

from times_tables.core import DEFAULT_FACT, Fact, SchedulingEngine, pick_fact
from times_tables.core.stats import LATEST_REVIEW


def _master(engine: SchedulingEngine, fact: Fact) -> None:
    for _ in range(3):
        engine.record_answer(fact, True, 1.0)


class TestConstruction:
    def test_has_all_144_facts(self, engine):
        facts = {s.fact for s in engine.all_stats()}

        assert len(facts) == 144
        assert facts == {Fact(a, b) for a in range(1, 13) for b in range(1, 13)}

    def test_reversed_pairs_tracked_independently(self, engine):
        engine._unlocked_tables = 5  # opens 1, 10, 5, 11, 2
        engine.record_answer(Fact(2, 5), False, 4.0)

        assert engine.stats_for(Fact(2, 5)).times_wrong == 1
        assert engine.stats_for(Fact(5, 2)).times_wrong == 0

    def test_initial_gate(self, engine):
        assert engine.unlocked_tables == 1
        assert engine.unlocked_tables_display() == [1]
        assert engine.unlocked_count() == 1
        assert engine.due_count() == 1
        assert engine.mastered_count() == 0
        assert engine.next_due_fact() == Fact(1, 1)
        assert engine.next_table_to_unlock() == 10

    def test_default_clock_is_timezone_aware(self):
        engine = SchedulingEngine()
        assert engine.clock().tzinfo is not None


class TestUnlocking:
    def test_three_fast_answers_open_second_table(self, engine):
        fact = Fact(1, 1)
        engine.record_answer(fact, True, 1.0)
        engine.record_answer(fact, True, 1.0)
        assert engine.unlocked_tables == 1

        engine.record_answer(fact, True, 1.0)

        assert engine.stats_for(fact).is_mastered() is True
        assert engine.unlocked_tables == 2
        assert engine.unlocked_tables_display() == [1, 10]
        assert engine.unlocked_count() == 4
        assert {s.fact for s in engine.unlocked_stats()} == {
            Fact(1, 1), Fact(1, 10), Fact(10, 1), Fact(10, 10),
        }

    def test_at_most_one_table_per_answer(self, engine):
        # Master every fact of the first three tables behind the gate's back
        for a in (1, 10, 5):
            for b in (1, 10, 5):
                stats = engine.stats_for(Fact(a, b))
                stats.consecutive_correct = 3

        engine.record_answer(Fact(1, 1), True, 1.0)
        assert engine.unlocked_tables == 2

        engine.record_answer(Fact(1, 1), True, 1.0)
        assert engine.unlocked_tables == 3

    def test_unknown_fact_still_checks_gate(self, engine):
        engine.stats_for(Fact(1, 1)).consecutive_correct = 3

        engine.record_answer(Fact(13, 2), True, 1.0)

        assert engine.unlocked_tables == 2
        assert engine.total_correct() == 0

    def test_unknown_fact_is_ignored(self, engine):
        before = engine.to_dict()
        engine.record_answer(Fact(0, 5), True, 1.0)
        assert engine.to_dict() == before

    def test_full_unlock_stops_at_twelve(self, engine):
        for stats in engine.all_stats():
            stats.consecutive_correct = 3

        for _ in range(20):
            engine.record_answer(Fact(1, 1), True, 1.0)

        assert engine.unlocked_tables == 12
        assert engine.unlocked_count() == 144
        assert engine.next_table_to_unlock() is None

    def test_unlock_is_monotonic(self, engine, clock):
        rng = random.Random(7)
        previous = engine.unlocked_tables

        for _ in range(600):
            fact = pick_fact(engine)
            engine.record_answer(fact, rng.random() < 0.85, rng.uniform(0.5, 10))
            clock.advance(hours=rng.randint(0, 30))

            assert previous <= engine.unlocked_tables <= 12
            previous = engine.unlocked_tables

        for stats in engine.all_stats():
            assert 1.3 <= stats.ease_factor <= 3.0


class TestSelection:
    @pytest.fixture
    def open_engine(self, engine):
        engine._unlocked_tables = 2  # 1 and 10
        return engine

    def test_lowest_ease_first(self, open_engine):
        open_engine.record_answer(Fact(10, 1), False, 2.0)
        assert open_engine.next_due_fact() == Fact(10, 1)

    def test_ties_broken_by_operands(self, open_engine):
        assert open_engine.next_due_fact() == Fact(1, 1)
        assert open_engine.extra_practice_fact() == Fact(1, 1)

    def test_excluding_skips_fact(self, open_engine):
        assert open_engine.next_due_fact(Fact(1, 1)) == Fact(1, 10)

    def test_no_repeat_when_alternatives_due(self, open_engine):
        open_engine.record_answer(Fact(10, 10), False, 1.0)
        weakest = open_engine.next_due_fact()

        assert weakest == Fact(10, 10)
        assert open_engine.next_due_fact(weakest) != weakest

    def test_only_due_facts_selected(self, open_engine):
        for fact in (Fact(1, 1), Fact(1, 10), Fact(10, 1)):
            open_engine.record_answer(fact, True, 1.0)

        assert open_engine.next_due_fact() == Fact(10, 10)
        assert open_engine.next_due_fact(Fact(10, 10)) is None

    def test_extra_practice_ignores_due(self, open_engine):
        for stats in open_engine.unlocked_stats():
            open_engine.record_answer(stats.fact, True, 12.0)
        open_engine.record_answer(Fact(10, 1), True, 1.0)

        assert open_engine.due_count() == 0
        assert open_engine.next_due_fact() is None
        # (10, 1) got the bigger bonus, so the weakest is the first of the rest
        assert open_engine.extra_practice_fact() == Fact(1, 1)

    def test_becomes_due_again_with_time(self, open_engine, clock):
        open_engine.record_answer(Fact(1, 1), True, 1.0)
        assert open_engine.stats_for(Fact(1, 1)).is_due(clock()) is False

        clock.advance(days=1)
        assert open_engine.stats_for(Fact(1, 1)).is_due(clock()) is True


class TestPickFact:
    def test_prefers_due_fact(self, engine):
        assert pick_fact(engine) == Fact(1, 1)

    def test_repeats_only_fact_when_excluded(self, engine):
        # Only 1 × 1 is open, so excluding it must fall through to it again
        assert engine.next_due_fact(Fact(1, 1)) is None
        assert engine.extra_practice_fact(Fact(1, 1)) is None
        assert pick_fact(engine, Fact(1, 1)) == Fact(1, 1)

    def test_repeats_when_not_due(self, engine):
        engine.record_answer(Fact(1, 1), True, 1.0)
        assert engine.due_count() == 0
        assert pick_fact(engine, Fact(1, 1)) == Fact(1, 1)

    def test_uses_extra_practice_before_repeating(self, engine):
        _master(engine, Fact(1, 1))
        for fact in (Fact(1, 10), Fact(10, 1), Fact(10, 10)):
            engine.record_answer(fact, True, 1.0)

        assert engine.due_count() == 0
        assert pick_fact(engine, Fact(1, 10)) != Fact(1, 10)

    def test_default_fact(self):
        assert DEFAULT_FACT == Fact(1, 1)


class TestAggregates:
    def test_totals_cover_locked_facts(self, engine):
        engine.record_answer(Fact(1, 1), True, 1.0)
        engine.stats_for(Fact(12, 12)).times_wrong = 4

        assert engine.total_correct() == 1
        assert engine.total_wrong() == 4

    def test_counts_only_unlocked(self, engine):
        engine.stats_for(Fact(7, 7)).consecutive_correct = 5
        assert engine.mastered_count() == 0
        assert engine.due_count() == 1

    def test_queries_are_idempotent(self, engine):
        _master(engine, Fact(1, 1))
        first = (engine.mastered_count(), engine.due_count(), engine.unlocked_count())
        second = (engine.mastered_count(), engine.due_count(), engine.unlocked_count())

        assert first == second == (1, 3, 4)

    def test_summary(self, engine):
        summary = engine.summary()

        assert summary == {
            "mastered": 0,
            "total": 1,
            "due": 1,
            "unlocked_tables": [1],
            "next_table": 10,
            "total_correct": 0,
            "total_wrong": 0,
        }


class TestLongSessions:
    def test_many_correct_answers_on_one_fact(self, engine):
        for _ in range(60):
            engine.record_answer(Fact(1, 1), True, 1.0)

        stats = engine.stats_for(Fact(1, 1))
        assert stats.times_correct == 60
        assert stats.next_review == LATEST_REVIEW

    def test_extra_practice_loop_with_everything_open(self, engine, clock):
        engine._unlocked_tables = 12
        last = None

        for _ in range(3000):
            fact = pick_fact(engine, last)
            engine.record_answer(fact, True, 1.0)
            last = fact

        assert engine.mastered_count() == 144
        assert engine.due_count() == 0
        assert engine.total_correct() == 3000
        for stats in engine.all_stats():
            assert clock() < stats.next_review <= LATEST_REVIEW

        restored = SchedulingEngine.from_dict(json.loads(json.dumps(engine.to_dict())), clock=clock)
        assert restored.to_dict() == engine.to_dict()
