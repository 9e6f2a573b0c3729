"""
Attempts: per-user attempt models, raw-record defaults and the SQLite store.
"""
from practice_analytics.attempts.models import (
    QuestionAttempt,
    StimulusPerformance,
    calculate_struggle_score,
    ensure_attempt_defaults,
)
from practice_analytics.attempts.store import AttemptStore

__all__ = [
    "AttemptStore",
    "QuestionAttempt",
    "StimulusPerformance",
    "calculate_struggle_score",
    "ensure_attempt_defaults",
]
