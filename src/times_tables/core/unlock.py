"""
Progressive table unlocking.

Tables open one at a time in a fixed order. A fact is practicable only
when both of its operands are open, so each newly opened table exposes
its pairings with every open table plus its own square.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .fact import TABLE_ORDER, Fact
from .stats import FactStats


@dataclass(frozen=True)
class UnlockPolicy:
    """Gate over the fact grid driven by ``TABLE_ORDER``."""

    order: tuple[int, ...] = TABLE_ORDER
    # Open the next table once mastered/unlocked reaches numerator/denominator.
    threshold_numerator: int = 3
    threshold_denominator: int = 4

    @property
    def max_tables(self) -> int:
        return len(self.order)

    def clamp(self, unlocked_tables: int) -> int:
        """Pull a table count into ``1..max_tables``."""
        return max(1, min(self.max_tables, unlocked_tables))

    def unlocked_values(self, unlocked_tables: int) -> tuple[int, ...]:
        """Open table values, in unlock order."""
        return self.order[:unlocked_tables]

    def next_value(self, unlocked_tables: int) -> int | None:
        if unlocked_tables >= self.max_tables:
            return None
        return self.order[unlocked_tables]

    def is_unlocked(self, fact: Fact, unlocked_tables: int) -> bool:
        values = self.unlocked_values(unlocked_tables)
        return fact.a in values and fact.b in values

    def should_advance(self, unlocked_stats: Iterable[FactStats], unlocked_tables: int) -> bool:
        """
        Whether enough of the open facts are mastered to open one more table.

        Integer comparison: ``mastered * 4 >= total * 3``.
        """
        if unlocked_tables >= self.max_tables:
            return False

        total = 0
        mastered = 0
        for stats in unlocked_stats:
            total += 1
            if stats.is_mastered():
                mastered += 1

        if total == 0:
            return False

        return mastered * self.threshold_denominator >= total * self.threshold_numerator
