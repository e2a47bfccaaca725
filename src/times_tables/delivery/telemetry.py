"""
Session Telemetry.

Tracks what happened during one practice run:
- Correct / wrong counts and accuracy
- Current and best correct streak
- Response times
- Facts missed repeatedly

Nothing here is persisted; long-term state lives in the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..core import Fact


@dataclass
class AnswerEvent:
    """A single answer in the session."""

    fact: Fact
    correct: bool
    response_seconds: float
    timestamp: datetime = field(default_factory=datetime.now)


class SessionTelemetry:
    """Tracks metrics for a single practice session."""

    def __init__(self):
        self.started_at = datetime.now()
        self.events: list[AnswerEvent] = []
        self._streak = 0
        self._best_streak = 0

    def record(self, fact: Fact, correct: bool, response_seconds: float) -> None:
        """
        Record an answer.

        Args:
            fact: The fact that was asked
            correct: Whether the first answer was right
            response_seconds: Time to answer
        """
        self.events.append(AnswerEvent(fact=fact, correct=correct, response_seconds=response_seconds))

        if correct:
            self._streak += 1
            self._best_streak = max(self._best_streak, self._streak)
        else:
            self._streak = 0

    # =========================================================================
    # Basic Metrics
    # =========================================================================

    @property
    def total_answers(self) -> int:
        return len(self.events)

    @property
    def correct_count(self) -> int:
        return sum(1 for e in self.events if e.correct)

    @property
    def wrong_count(self) -> int:
        return self.total_answers - self.correct_count

    @property
    def accuracy(self) -> float:
        """Fraction of answers that were correct."""
        if not self.events:
            return 0.0
        return self.correct_count / len(self.events)

    @property
    def average_response_seconds(self) -> float:
        if not self.events:
            return 0.0
        return sum(e.response_seconds for e in self.events) / len(self.events)

    @property
    def streak(self) -> int:
        """Current run of consecutive correct answers."""
        return self._streak

    @property
    def best_streak(self) -> int:
        return self._best_streak

    @property
    def duration_minutes(self) -> float:
        delta = datetime.now() - self.started_at
        return delta.total_seconds() / 60

    # =========================================================================
    # Analysis
    # =========================================================================

    def get_stats(self) -> dict:
        """
        Get session statistics.

        Returns:
            Dictionary of session metrics
        """
        return {
            "duration_minutes": round(self.duration_minutes, 1),
            "total_answers": self.total_answers,
            "correct_count": self.correct_count,
            "wrong_count": self.wrong_count,
            "accuracy_percent": round(self.accuracy * 100, 1),
            "avg_response_seconds": round(self.average_response_seconds, 2),
            "streak": self._streak,
            "best_streak": self._best_streak,
        }

    def get_struggling_facts(self, min_failures: int = 2) -> list[Fact]:
        """
        Facts answered wrong at least ``min_failures`` times this session.

        Returns:
            Facts in ``(a, b)`` order
        """
        failure_counts: dict[Fact, int] = {}

        for event in self.events:
            if not event.correct:
                failure_counts[event.fact] = failure_counts.get(event.fact, 0) + 1

        return sorted(fact for fact, count in failure_counts.items() if count >= min_failures)
