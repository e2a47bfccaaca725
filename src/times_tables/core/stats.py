"""
Per-fact mastery model.

Each fact carries an ease factor that both ranks it for selection
(lowest ease is presented first) and drives how quickly its review
interval grows. Correct answers grow the interval and raise ease by
an amount that depends on response latency; a wrong answer makes the
fact due immediately and lowers ease.

Latency bonus:
    < 3s   +0.15
    3-8s   +0.10
    > 8s   +0.05
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from .fact import Fact

INITIAL_EASE = 2.5
MIN_EASE = 1.3
MAX_EASE = 3.0
WRONG_PENALTY = 0.2

FAST_SECONDS = 3.0
SLOW_SECONDS = 8.0
FAST_BONUS = 0.15
NORMAL_BONUS = 0.10
SLOW_BONUS = 0.05

MASTERY_STREAK = 3
MASTERY_EASE = 2.0

SECONDS_PER_DAY = 86400

# Reviews that would land past the end of the calendar are pinned here.
LATEST_REVIEW = datetime.max.replace(tzinfo=UTC)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


def review_after(now: datetime, interval_days: float) -> datetime:
    """
    Time of the next review, ``interval_days`` after ``now``.

    Intervals too long for ``datetime`` (including ``inf``) give
    ``LATEST_REVIEW``.
    """
    seconds = interval_days * SECONDS_PER_DAY
    if seconds >= (LATEST_REVIEW - now).total_seconds():
        return LATEST_REVIEW
    return now + timedelta(seconds=seconds)


def ease_bonus(response_seconds: float) -> float:
    """Ease increase for a correct answer given in ``response_seconds``."""
    if response_seconds < FAST_SECONDS:
        return FAST_BONUS
    if response_seconds <= SLOW_SECONDS:
        return NORMAL_BONUS
    return SLOW_BONUS


@dataclass
class FactStats:
    """Learning state for one fact."""

    fact: Fact
    next_review: datetime
    ease_factor: float = INITIAL_EASE
    interval_days: float = 0.0
    times_correct: int = 0
    times_wrong: int = 0
    consecutive_correct: int = 0

    @classmethod
    def new(cls, fact: Fact, now: datetime) -> FactStats:
        """Fresh stats, due at ``now``."""
        return cls(fact=fact, next_review=now)

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_review

    def is_mastered(self) -> bool:
        return self.consecutive_correct >= MASTERY_STREAK and self.ease_factor >= MASTERY_EASE

    def record_answer(self, correct: bool, response_seconds: float, now: datetime) -> None:
        """
        Apply one outcome and reschedule.

        Args:
            correct: Whether the learner's answer was right
            response_seconds: Time taken to answer
            now: Current time; ``next_review`` is computed from it
        """
        if correct:
            self.times_correct += 1
            self.consecutive_correct += 1

            if self.interval_days < 1.0:
                self.interval_days = 1.0
            else:
                self.interval_days *= self.ease_factor

            self.ease_factor = min(MAX_EASE, self.ease_factor + ease_bonus(response_seconds))
        else:
            self.times_wrong += 1
            self.consecutive_correct = 0
            self.interval_days = 0.0
            self.ease_factor = max(MIN_EASE, self.ease_factor - WRONG_PENALTY)

        self.next_review = review_after(now, self.interval_days)

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        return {
            "fact": self.fact.to_dict(),
            "ease_factor": self.ease_factor,
            "interval_days": self.interval_days,
            "next_review": self.next_review.isoformat(),
            "times_correct": self.times_correct,
            "times_wrong": self.times_wrong,
            "consecutive_correct": self.consecutive_correct,
        }

    @classmethod
    def from_dict(cls, fact: Fact, data: dict[str, Any]) -> FactStats:
        """
        Rebuild stats for ``fact`` from a persisted record.

        Out-of-range ease and negative intervals are pulled back inside
        their bounds. Naive timestamps are read as UTC.

        Raises:
            KeyError, TypeError, ValueError: On missing or malformed fields.
        """
        next_review = data["next_review"]
        if isinstance(next_review, str):
            next_review = datetime.fromisoformat(next_review)
        if not isinstance(next_review, datetime):
            raise TypeError(f"next_review must be a timestamp, got {type(next_review).__name__}")
        if next_review.tzinfo is None:
            next_review = next_review.replace(tzinfo=UTC)

        return cls(
            fact=fact,
            next_review=next_review,
            ease_factor=min(MAX_EASE, max(MIN_EASE, float(data["ease_factor"]))),
            interval_days=max(0.0, float(data["interval_days"])),
            times_correct=_count(data, "times_correct"),
            times_wrong=_count(data, "times_wrong"),
            consecutive_correct=_count(data, "consecutive_correct"),
        )


def _count(data: dict[str, Any], name: str) -> int:
    value = int(data.get(name, 0))
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value
