"""
Times Tables: spaced-repetition practice for multiplication facts.

Presents the weakest-retained fact first, reschedules it from the
learner's accuracy and speed, and opens new tables as earlier ones are
mastered. Ships a terminal practice app and a small multi-user HTTP API.
"""

__version__ = "1.0.0"
