"""
Bucket Aggregator.

Single linear pass over collated questions, updating the skill, unit,
subtopic, difficulty and cognitive-level buckets side by side, plus the
per-skill streak trackers and the summary sums.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from practice_analytics.analytics.buckets import (
    Bucket,
    BucketMap,
    SkillBucket,
    StreakTracker,
    cognitive_buckets,
    difficulty_buckets,
    skill_buckets,
    streak_trackers,
    subtopic_buckets,
    unit_buckets,
)
from practice_analytics.analytics.collator import QuestionContext

SUBTOPIC_SEPARATOR = " → "
UNKNOWN_KEY = "unknown"


def subtopic_key(unit_name: str, subtopic_name: str) -> str:
    return f"{unit_name}{SUBTOPIC_SEPARATOR}{subtopic_name}"


def _dimension_key(value: str | None) -> str:
    return (value or UNKNOWN_KEY).lower()


@dataclass
class AggregationResult:
    """Raw output of the aggregation pass, before rates are derived."""

    total_questions: int = 0
    attempted_questions: int = 0
    correct_questions: int = 0
    unanswered: int = 0
    total_time_seconds: float = 0.0
    total_attempts: int = 0

    skills: BucketMap[SkillBucket] = field(default_factory=skill_buckets)
    units: BucketMap[Bucket] = field(default_factory=unit_buckets)
    subtopics: BucketMap[Bucket] = field(default_factory=subtopic_buckets)
    difficulties: BucketMap[Bucket] = field(default_factory=difficulty_buckets)
    cognitive: BucketMap[Bucket] = field(default_factory=cognitive_buckets)
    streaks: BucketMap[StreakTracker] = field(default_factory=streak_trackers)
    unanswered_questions: list[str] = field(default_factory=list)


def aggregate(contexts: list[QuestionContext]) -> AggregationResult:
    """
    Aggregate collated questions into per-dimension buckets.

    Args:
        contexts: Output of collate_questions, in bank order

    Returns:
        AggregationResult holding every bucket map and summary sum
    """
    result = AggregationResult(total_questions=len(contexts))

    for ctx in contexts:
        attempt = ctx.attempt
        if attempt is not None:
            result.attempted_questions += 1
            if attempt.is_correct:
                result.correct_questions += 1
            result.total_time_seconds += attempt.time_spent_seconds
            # A recorded attempt with no count still counts once
            result.total_attempts += attempt.attempts or 1
        else:
            result.unanswered += 1
            result.unanswered_questions.append(ctx.key)

        for skill in ctx.question.skill_tags:
            result.skills[skill].add(ctx)
            result.streaks[skill].update(ctx.correct)

        result.units[ctx.unit_name].add(ctx)
        result.subtopics[subtopic_key(ctx.unit_name, ctx.subtopic_name)].add(ctx)
        result.difficulties[_dimension_key(ctx.question.metadata.difficulty)].add(ctx)
        result.cognitive[_dimension_key(ctx.question.metadata.cognitive_level)].add(ctx)

    return result
