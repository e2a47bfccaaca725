"""
Multiplication facts.

A fact is one ordered operand pair. ``3 × 7`` and ``7 × 3`` are
separate facts with separate learning histories.
"""

from __future__ import annotations

from dataclasses import dataclass

MIN_OPERAND = 1
MAX_OPERAND = 12

# Curated unlock progression: memorable multipliers first.
TABLE_ORDER: tuple[int, ...] = (1, 10, 5, 11, 2, 3, 9, 4, 6, 7, 8, 12)


@dataclass(frozen=True, order=True)
class Fact:
    """A single multiplication problem ``a × b``."""

    a: int
    b: int

    @property
    def answer(self) -> int:
        return self.a * self.b

    @property
    def key(self) -> str:
        """Persisted identity, e.g. ``"3x7"``."""
        return f"{self.a}x{self.b}"

    def display(self) -> str:
        return f"{self.a} × {self.b} = ?"

    def is_valid(self) -> bool:
        """Whether both operands fall inside the 12×12 grid."""
        return MIN_OPERAND <= self.a <= MAX_OPERAND and MIN_OPERAND <= self.b <= MAX_OPERAND

    def to_dict(self) -> dict[str, int]:
        return {"a": self.a, "b": self.b}


def generate_all_facts() -> list[Fact]:
    """All 144 ordered facts, row-major from ``1 × 1`` to ``12 × 12``."""
    return [
        Fact(a, b)
        for a in range(MIN_OPERAND, MAX_OPERAND + 1)
        for b in range(MIN_OPERAND, MAX_OPERAND + 1)
    ]


def parse_fact_key(key: str) -> Fact:
    """
    Parse a persisted key such as ``"3x7"``.

    Raises:
        ValueError: If the key is not two integers joined by ``x``.
    """
    left, sep, right = key.partition("x")
    if not sep:
        raise ValueError(f"Invalid fact key: {key!r}")
    return Fact(int(left), int(right))
