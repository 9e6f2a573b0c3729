"""
Aggregate buckets.

A bucket is a running tally keyed by one dimension value (a skill, a unit, a
difficulty tier, ...). Buckets are created lazily, on first access, through
the factory owned by their BucketMap so every dimension starts from the same
zeroed defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterator, TypeVar

from practice_analytics.analytics.collator import QuestionContext


@dataclass
class Bucket:
    """Running counts and sums for one dimension value."""

    key: str
    total_questions: int = 0
    attempted_questions: int = 0
    correct_questions: int = 0
    attempts: int = 0  # Summed attempt counts
    time_spent_seconds: float = 0.0  # Summed time
    unanswered: int = 0

    def add(self, ctx: QuestionContext) -> None:
        """Count one question (and its attempt, if any) into this bucket."""
        self.total_questions += 1
        if ctx.attempt is not None:
            self.attempted_questions += 1
            self.attempts += ctx.attempt.attempts
            self.time_spent_seconds += ctx.attempt.time_spent_seconds
            if ctx.attempt.is_correct:
                self.correct_questions += 1
        else:
            self.unanswered += 1

    @property
    def accuracy(self) -> float:
        if self.attempted_questions == 0:
            return 0.0
        return self.correct_questions / self.attempted_questions

    @property
    def avg_time_seconds(self) -> float:
        if self.attempts == 0:
            return 0.0
        return self.time_spent_seconds / self.attempts


@dataclass
class SkillBucket(Bucket):
    """Bucket for a skill tag, with mastery, streak and mistake tracking."""

    streak: int = 0  # Highest current streak seen on any of the skill's questions
    mastery_sum: float = 0.0
    mistake_counts: dict[str, int] = field(default_factory=dict)

    def add(self, ctx: QuestionContext) -> None:
        super().add(ctx)
        attempt = ctx.attempt
        if attempt is None:
            return

        self.streak = max(self.streak, attempt.streak)

        # Crude mastery proxy: correct / max(attempts, correct, 1-if-attempted).
        # Unattempted questions contribute 0 but still count in the divisor.
        mastered = attempt.correct_attempts
        denominator = max(attempt.attempts, mastered, 1)
        self.mastery_sum += mastered / denominator

        if not attempt.is_correct:
            for pattern in ctx.question.common_mistake_patterns:
                self.mistake_counts[pattern] = self.mistake_counts.get(pattern, 0) + 1

    @property
    def mastery(self) -> float:
        if self.total_questions == 0:
            return 0.0
        return self.mastery_sum / self.total_questions

    @property
    def mistake_count(self) -> int:
        return sum(self.mistake_counts.values())


@dataclass
class StreakTracker:
    """Correct-answer streak over a skill's questions in bank order."""

    best: int = 0
    current: int = 0

    def update(self, correct: bool) -> None:
        self.current = self.current + 1 if correct else 0
        self.best = max(self.best, self.current)


B = TypeVar("B")


class BucketMap(Generic[B]):
    """Insertion-ordered map of buckets that creates zeroed buckets on first access."""

    def __init__(self, factory: Callable[[str], B]):
        self._factory = factory
        self._buckets: dict[str, B] = {}

    def __getitem__(self, key: str) -> B:
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = self._factory(key)
            self._buckets[key] = bucket
        return bucket

    def get(self, key: str) -> B | None:
        """Look up a bucket without creating it."""
        return self._buckets.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._buckets

    def __iter__(self) -> Iterator[str]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def values(self) -> list[B]:
        return list(self._buckets.values())

    def items(self) -> list[tuple[str, B]]:
        return list(self._buckets.items())


# One factory per dimension
def skill_buckets() -> BucketMap[SkillBucket]:
    return BucketMap(SkillBucket)


def unit_buckets() -> BucketMap[Bucket]:
    return BucketMap(Bucket)


def subtopic_buckets() -> BucketMap[Bucket]:
    return BucketMap(Bucket)


def difficulty_buckets() -> BucketMap[Bucket]:
    return BucketMap(Bucket)


def cognitive_buckets() -> BucketMap[Bucket]:
    return BucketMap(Bucket)


def streak_trackers() -> BucketMap[StreakTracker]:
    return BucketMap(lambda _key: StreakTracker())
