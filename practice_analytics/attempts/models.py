"""
Attempt models.

A QuestionAttempt is the per-user, per-question rollup of every answer the
learner has submitted. Raw records (JSON exports, API payloads) pass through
`ensure_attempt_defaults` so that optional fields always carry a value before
the analytics engine sees them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_EXPECTED_TIME_SECONDS = 120.0


@dataclass
class StimulusPerformance:
    """Performance on a stimulus-bearing question."""

    attempt_count: int = 0
    time_spent_seconds: float = 0.0
    was_correct: bool = False
    struggle_score: float = 0.0  # 0-1, higher = more struggle


@dataclass
class QuestionAttempt:
    """Rolled-up attempt history for one question."""

    question_id: str
    attempts: int = 0
    correct_attempts: int = 0
    streak: int = 0  # Current correct streak, resets on incorrect
    time_spent_seconds: float = 0.0
    is_correct: bool = False  # Whether the last attempt was correct
    status: str = "unanswered"  # unanswered | correct | incorrect
    confidence: int | None = None  # Self-reported 1-5
    last_attempt_timestamp: float | None = None
    answer_events: list[dict[str, Any]] = field(default_factory=list)
    correct_timestamps: list[str] = field(default_factory=list)
    stimulus_performance: StimulusPerformance | None = None

    @property
    def struggle_score(self) -> float | None:
        if self.stimulus_performance is None:
            return None
        return self.stimulus_performance.struggle_score


def calculate_struggle_score(
    is_correct: bool,
    time_spent_seconds: float,
    max_expected_time: float = DEFAULT_EXPECTED_TIME_SECONDS,
) -> float:
    """
    Calculate a 0-1 struggle score from correctness and time on task.

    Formula:
        70% × (0 if correct else 1) +
        30% × normalized time (time / expected, capped at 2x, halved)

    Args:
        is_correct: Whether the attempt was correct
        time_spent_seconds: Time spent on the attempt
        max_expected_time: Time that counts as a full-effort attempt

    Returns:
        Struggle score clamped to [0, 1]
    """
    correctness_component = 0.0 if is_correct else 1.0
    if max_expected_time > 0:
        normalized_time = min(max(time_spent_seconds, 0.0) / max_expected_time, 2.0) / 2.0
    else:
        normalized_time = 0.0
    score = correctness_component * 0.7 + normalized_time * 0.3
    return max(0.0, min(1.0, score))


def _get(raw: dict[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    value = raw.get(camel)
    if value is None:
        value = raw.get(snake)
    return default if value is None else value


def _count(value: Any) -> int:
    return max(0, int(value or 0))


def _seconds(value: Any) -> float:
    return max(0.0, float(value or 0))


def _stimulus_performance(raw: Any) -> StimulusPerformance | None:
    if not isinstance(raw, dict):
        return None
    struggle = float(_get(raw, "struggleScore", "struggle_score", 0) or 0)
    return StimulusPerformance(
        attempt_count=_count(_get(raw, "attemptCount", "attempt_count", 0)),
        time_spent_seconds=_seconds(_get(raw, "timeSpentSeconds", "time_spent_seconds", 0)),
        was_correct=bool(_get(raw, "wasCorrect", "was_correct", False)),
        struggle_score=max(0.0, min(1.0, struggle)),
    )


def ensure_attempt_defaults(raw: dict[str, Any]) -> QuestionAttempt:
    """
    Build a QuestionAttempt from a raw record, defaulting missing fields.

    Accepts camelCase (legacy JSON exports) or snake_case keys. Falsy or negative
    counts and times collapse to 0, struggle scores are clamped to [0, 1] and a
    confidence outside 1-5 is dropped. A missing `answerEvents` becomes an
    empty list.
    """
    is_correct = bool(_get(raw, "isCorrect", "is_correct", False))
    attempts = _count(_get(raw, "attempts", "attempts", 0))
    status = _get(raw, "status", "status", None)
    if status is None:
        status = ("correct" if is_correct else "incorrect") if attempts else "unanswered"

    confidence = _get(raw, "confidence", "confidence", None)
    if confidence is not None:
        confidence = int(confidence)
        if not 1 <= confidence <= 5:
            confidence = None

    return QuestionAttempt(
        question_id=str(_get(raw, "questionId", "question_id", "")),
        attempts=attempts,
        correct_attempts=_count(_get(raw, "correctAttempts", "correct_attempts", 0)),
        streak=_count(_get(raw, "streak", "streak", 0)),
        time_spent_seconds=_seconds(_get(raw, "timeSpentSeconds", "time_spent_seconds", 0)),
        is_correct=is_correct,
        status=str(status),
        confidence=confidence,
        last_attempt_timestamp=_get(raw, "lastAttemptTimestamp", "last_attempt_timestamp", None),
        answer_events=list(_get(raw, "answerEvents", "answer_events", []) or []),
        correct_timestamps=list(_get(raw, "correctTimestamps", "correct_timestamps", []) or []),
        stimulus_performance=_stimulus_performance(
            _get(raw, "stimulusPerformance", "stimulus_performance", None)
        ),
    )
