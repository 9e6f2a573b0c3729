"""
Derived Metrics Finalizer.

Turns the running sums of an AggregationResult into rates and report rows.
Pure: reads bucket state, allocates new report objects, mutates nothing.
"""

from __future__ import annotations

from dataclasses import dataclass

from practice_analytics.analytics.aggregator import SUBTOPIC_SEPARATOR, AggregationResult
from practice_analytics.analytics.buckets import Bucket, SkillBucket, StreakTracker
from practice_analytics.analytics.report import (
    BucketStat,
    MistakePattern,
    SkillStat,
    StreakInsight,
    SubtopicStat,
    Summary,
    UnitStat,
)

FRAGILE_MIN_ATTEMPTED = 3
FRAGILE_MAX_ACCURACY = 0.70
FRAGILE_MAX_STREAK = 2


@dataclass
class FinalizedMetrics:
    summary: Summary
    skills: list[SkillStat]
    units: list[UnitStat]
    subtopics: list[SubtopicStat]
    difficulties: list[BucketStat]
    cognitive: list[BucketStat]
    mistake_patterns: list[MistakePattern]
    streaks: list[StreakInsight]
    fragile_skills: list[str]


def is_fragile(
    attempted_questions: int,
    accuracy: float,
    streak: int,
    min_attempted: int = FRAGILE_MIN_ATTEMPTED,
    max_accuracy: float = FRAGILE_MAX_ACCURACY,
    max_streak: int = FRAGILE_MAX_STREAK,
) -> bool:
    """Enough data, sub-threshold accuracy and no recent correct streak."""
    return attempted_questions >= min_attempted and accuracy < max_accuracy and streak < max_streak


def _bucket_fields(bucket: Bucket) -> dict:
    return {
        "key": bucket.key,
        "total_questions": bucket.total_questions,
        "attempted_questions": bucket.attempted_questions,
        "correct_questions": bucket.correct_questions,
        "attempts": bucket.attempts,
        "accuracy": bucket.accuracy,
        "avg_time_seconds": bucket.avg_time_seconds,
        "unanswered": bucket.unanswered,
    }


def finalize_skill(
    bucket: SkillBucket,
    tracker: StreakTracker | None = None,
    fragile_min_attempted: int = FRAGILE_MIN_ATTEMPTED,
    fragile_max_accuracy: float = FRAGILE_MAX_ACCURACY,
    fragile_max_streak: int = FRAGILE_MAX_STREAK,
) -> SkillStat:
    best_streak = max(bucket.streak, tracker.best if tracker else 0)
    return SkillStat(
        skill=bucket.key,
        total_questions=bucket.total_questions,
        attempted_questions=bucket.attempted_questions,
        correct_questions=bucket.correct_questions,
        attempts=bucket.attempts,
        accuracy=bucket.accuracy,
        avg_time_seconds=bucket.avg_time_seconds,
        streak=bucket.streak,
        mastery=bucket.mastery,
        mistake_counts=dict(bucket.mistake_counts),
        fragile=is_fragile(
            bucket.attempted_questions,
            bucket.accuracy,
            best_streak,
            min_attempted=fragile_min_attempted,
            max_accuracy=fragile_max_accuracy,
            max_streak=fragile_max_streak,
        ),
    )


def finalize(
    result: AggregationResult,
    fragile_min_attempted: int = FRAGILE_MIN_ATTEMPTED,
    fragile_max_accuracy: float = FRAGILE_MAX_ACCURACY,
    fragile_max_streak: int = FRAGILE_MAX_STREAK,
) -> FinalizedMetrics:
    """
    Derive accuracy, average time, mastery and fragility from raw buckets.

    Args:
        result: Output of aggregate()
        fragile_min_attempted: Attempted questions needed before a skill can be fragile
        fragile_max_accuracy: Accuracy below which a skill can be fragile
        fragile_max_streak: Streak below which a skill can be fragile

    Returns:
        FinalizedMetrics with every list in first-seen order
    """
    summary = Summary(
        total_questions=result.total_questions,
        attempted_questions=result.attempted_questions,
        correct_questions=result.correct_questions,
        unanswered=result.unanswered,
        avg_accuracy=(
            result.correct_questions / result.attempted_questions
            if result.attempted_questions > 0
            else 0.0
        ),
        avg_time_seconds=(
            result.total_time_seconds / result.total_attempts if result.total_attempts > 0 else 0.0
        ),
    )

    skills = [
        finalize_skill(
            bucket,
            result.streaks.get(key),
            fragile_min_attempted=fragile_min_attempted,
            fragile_max_accuracy=fragile_max_accuracy,
            fragile_max_streak=fragile_max_streak,
        )
        for key, bucket in result.skills.items()
    ]

    subtopics = [SubtopicStat(**_bucket_fields(b)) for b in result.subtopics.values()]
    units = [
        UnitStat(
            **_bucket_fields(b),
            subtopics=[s for s in subtopics if s.key.startswith(f"{b.key}{SUBTOPIC_SEPARATOR}")],
        )
        for b in result.units.values()
    ]

    mistake_patterns = [
        MistakePattern(skill=skill.skill, pattern=pattern, count=count)
        for skill in skills
        for pattern, count in skill.mistake_counts.items()
    ]

    streaks = [
        StreakInsight(skill=key, best=tracker.best, current=tracker.current)
        for key, tracker in result.streaks.items()
    ]

    return FinalizedMetrics(
        summary=summary,
        skills=skills,
        units=units,
        subtopics=subtopics,
        difficulties=[BucketStat(**_bucket_fields(b)) for b in result.difficulties.values()],
        cognitive=[BucketStat(**_bucket_fields(b)) for b in result.cognitive.values()],
        mistake_patterns=mistake_patterns,
        streaks=streaks,
        fragile_skills=[s.skill for s in skills if s.fragile],
    )
