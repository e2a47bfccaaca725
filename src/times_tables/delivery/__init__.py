"""
Local practice delivery.

Components:
- ProgressFile: JSON persistence for one learner
- SessionTelemetry: Per-session counters and streaks
- cli: Typer/Rich terminal app
"""

from .progress_file import ProgressFile, ProgressFileError
from .telemetry import AnswerEvent, SessionTelemetry

__all__ = [
    # Persistence
    "ProgressFile",
    "ProgressFileError",
    # Telemetry
    "SessionTelemetry",
    "AnswerEvent",
]
