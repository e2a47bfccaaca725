"""
Scheduling engine for the 12×12 fact grid.

Owns one ``FactStats`` per fact and the number of open tables. Callers
ask for the next fact, present it, and report the outcome back through
``record_answer``; that is the only mutation path.

Selection always returns the open fact with the lowest ease factor,
ties broken by ascending ``(a, b)``.

The engine does no I/O. Persistence goes through ``to_dict`` /
``from_dict``; time comes from the injected ``clock``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

from loguru import logger

from .fact import Fact, generate_all_facts, parse_fact_key
from .stats import FactStats, utc_now
from .unlock import UnlockPolicy

Clock = Callable[[], datetime]

DEFAULT_FACT = Fact(1, 1)


class EngineStateError(ValueError):
    """Persisted engine state could not be understood."""


def _selection_key(stats: FactStats) -> tuple[float, int, int]:
    return (stats.ease_factor, stats.fact.a, stats.fact.b)


class SchedulingEngine:
    """
    Spaced-repetition scheduler with a progressive unlock gate.

    A fresh engine tracks all 144 facts, all due now, with only the
    first table in the unlock order open (so only ``1 × 1`` is
    practicable).
    """

    def __init__(
        self,
        clock: Clock | None = None,
        policy: UnlockPolicy | None = None,
    ):
        """
        Initialize a fresh engine.

        Args:
            clock: Returns the current (timezone-aware) time; defaults to UTC wall clock
            policy: Unlock gate (uses the standard table order if None)
        """
        self.clock = clock or utc_now
        self.policy = policy or UnlockPolicy()

        now = self.clock()
        self._stats: dict[str, FactStats] = {
            fact.key: FactStats.new(fact, now) for fact in generate_all_facts()
        }
        self._unlocked_tables = 1

    # =========================================================================
    # State access
    # =========================================================================

    @property
    def unlocked_tables(self) -> int:
        return self._unlocked_tables

    def stats_for(self, fact: Fact) -> FactStats | None:
        return self._stats.get(fact.key)

    def all_stats(self) -> list[FactStats]:
        return list(self._stats.values())

    def is_unlocked(self, fact: Fact) -> bool:
        return self.policy.is_unlocked(fact, self._unlocked_tables)

    def _unlocked(self) -> Iterator[FactStats]:
        values = set(self.policy.unlocked_values(self._unlocked_tables))
        for stats in self._stats.values():
            if stats.fact.a in values and stats.fact.b in values:
                yield stats

    def unlocked_stats(self) -> list[FactStats]:
        """Stats of the open facts, in ``(a, b)`` order."""
        return sorted(self._unlocked(), key=lambda s: s.fact)

    # =========================================================================
    # Selection
    # =========================================================================

    def next_due_fact(self, excluding: Fact | None = None) -> Fact | None:
        """Weakest open fact that is due, other than ``excluding``."""
        now = self.clock()
        candidates = [
            s for s in self._unlocked() if s.is_due(now) and s.fact != excluding
        ]
        if not candidates:
            return None
        return min(candidates, key=_selection_key).fact

    def extra_practice_fact(self, excluding: Fact | None = None) -> Fact | None:
        """Weakest open fact regardless of due time, other than ``excluding``."""
        candidates = [s for s in self._unlocked() if s.fact != excluding]
        if not candidates:
            return None
        return min(candidates, key=_selection_key).fact

    # =========================================================================
    # Recording
    # =========================================================================

    def record_answer(self, fact: Fact, correct: bool, elapsed_seconds: float) -> None:
        """
        Record an outcome for ``fact`` and re-evaluate the unlock gate.

        Facts outside the grid are ignored; the gate is still checked.
        """
        stats = self._stats.get(fact.key)
        if stats is None:
            logger.debug(f"Ignoring answer for unknown fact {fact.key}")
        else:
            stats.record_answer(correct, elapsed_seconds, self.clock())

        self._check_unlock()

    def _check_unlock(self) -> None:
        if self.policy.should_advance(self._unlocked(), self._unlocked_tables):
            self._unlocked_tables += 1
            logger.debug(
                f"Unlocked table {self.policy.order[self._unlocked_tables - 1]} "
                f"({self._unlocked_tables}/{self.policy.max_tables})"
            )

    # =========================================================================
    # Aggregates
    # =========================================================================

    def unlocked_count(self) -> int:
        return sum(1 for _ in self._unlocked())

    def mastered_count(self) -> int:
        return sum(1 for s in self._unlocked() if s.is_mastered())

    def due_count(self) -> int:
        now = self.clock()
        return sum(1 for s in self._unlocked() if s.is_due(now))

    def total_correct(self) -> int:
        return sum(s.times_correct for s in self._stats.values())

    def total_wrong(self) -> int:
        return sum(s.times_wrong for s in self._stats.values())

    def unlocked_tables_display(self) -> list[int]:
        return list(self.policy.unlocked_values(self._unlocked_tables))

    def next_table_to_unlock(self) -> int | None:
        return self.policy.next_value(self._unlocked_tables)

    def summary(self) -> dict[str, Any]:
        """Progress figures shown by the CLI and returned by the API."""
        return {
            "mastered": self.mastered_count(),
            "total": self.unlocked_count(),
            "due": self.due_count(),
            "unlocked_tables": self.unlocked_tables_display(),
            "next_table": self.next_table_to_unlock(),
            "total_correct": self.total_correct(),
            "total_wrong": self.total_wrong(),
        }

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": {key: stats.to_dict() for key, stats in self._stats.items()},
            "unlocked_tables": self._unlocked_tables,
        }

    @classmethod
    def from_dict(
        cls,
        data: Any,
        clock: Clock | None = None,
        policy: UnlockPolicy | None = None,
    ) -> SchedulingEngine:
        """
        Rebuild an engine from ``to_dict`` output.

        Missing facts start fresh, keys outside the grid are dropped and
        an absent ``unlocked_tables`` means 1.

        Raises:
            EngineStateError: If the payload is malformed.
        """
        if not isinstance(data, dict):
            raise EngineStateError(f"Engine state must be a mapping, got {type(data).__name__}")

        engine = cls(clock=clock, policy=policy)

        stats_data = data.get("stats", {})
        if not isinstance(stats_data, dict):
            raise EngineStateError("'stats' must be a mapping of fact keys to records")

        for key, record in stats_data.items():
            try:
                fact = parse_fact_key(key)
            except ValueError as e:
                raise EngineStateError(str(e)) from e

            if fact.key not in engine._stats:
                logger.debug(f"Dropping stats for fact outside the grid: {key}")
                continue
            if not isinstance(record, dict):
                raise EngineStateError(f"Record for {key} must be a mapping")

            try:
                engine._stats[fact.key] = FactStats.from_dict(fact, record)
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                raise EngineStateError(f"Invalid record for {key}: {e}") from e

        unlocked = data.get("unlocked_tables", 1)
        try:
            unlocked = int(unlocked)
        except (TypeError, ValueError, OverflowError) as e:
            raise EngineStateError(f"Invalid unlocked_tables: {unlocked!r}") from e
        engine._unlocked_tables = engine.policy.clamp(unlocked)

        return engine


def pick_fact(engine: SchedulingEngine, last: Fact | None = None) -> Fact:
    """
    Choose the fact to present next.

    Tries, in order: a due fact other than ``last``, extra practice other
    than ``last``, then both again allowing ``last``, then ``1 × 1``.
    """
    return (
        engine.next_due_fact(last)
        or engine.extra_practice_fact(last)
        or engine.next_due_fact(None)
        or engine.extra_practice_fact(None)
        or DEFAULT_FACT
    )
