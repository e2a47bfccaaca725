"""
Scheduling core: facts, per-fact mastery, unlock gate and engine.

Components:
- Fact: One ordered multiplication problem
- FactStats: Ease factor, interval and due time for one fact
- UnlockPolicy: Table-by-table gate over the 12×12 grid
- SchedulingEngine: Selection, recording and aggregate queries
"""

from .engine import DEFAULT_FACT, EngineStateError, SchedulingEngine, pick_fact
from .fact import TABLE_ORDER, Fact, generate_all_facts, parse_fact_key
from .stats import FactStats, utc_now
from .unlock import UnlockPolicy

__all__ = [
    # Facts
    "Fact",
    "TABLE_ORDER",
    "generate_all_facts",
    "parse_fact_key",
    # Mastery model
    "FactStats",
    "utc_now",
    # Gate
    "UnlockPolicy",
    # Engine
    "SchedulingEngine",
    "EngineStateError",
    "DEFAULT_FACT",
    "pick_fact",
]
