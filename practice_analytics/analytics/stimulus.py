"""
Stimulus Analytics Sub-aggregator.

Same aggregation shape as the main pass, restricted to questions that bundle
a stimulus (passage, table, graph). Groups by stimulus type (a question can
carry several) and by its single complexity tier.
"""

from __future__ import annotations

from dataclasses import dataclass

from practice_analytics.analytics.buckets import BucketMap
from practice_analytics.analytics.collator import QuestionContext
from practice_analytics.analytics.report import StimulusAnalytics, StimulusGroupStat


@dataclass
class StimulusBucket:
    key: str
    count: int = 0
    attempted: int = 0
    correct: int = 0
    attempts: int = 0
    time_spent_seconds: float = 0.0
    struggle_sum: float = 0.0

    def add(self, ctx: QuestionContext) -> None:
        self.count += 1
        attempt = ctx.attempt
        if attempt is None:
            return
        self.attempted += 1
        if attempt.is_correct:
            self.correct += 1
        self.attempts += attempt.attempts
        self.time_spent_seconds += attempt.time_spent_seconds
        self.struggle_sum += attempt.struggle_score or 0.0

    def finalize(self) -> StimulusGroupStat:
        return StimulusGroupStat(
            key=self.key,
            count=self.count,
            attempted=self.attempted,
            correct=self.correct,
            accuracy=self.correct / self.attempted if self.attempted > 0 else 0.0,
            avg_struggle_score=self.struggle_sum / self.attempted if self.attempted > 0 else 0.0,
            avg_time_seconds=self.time_spent_seconds / self.attempts if self.attempts > 0 else 0.0,
        )


def compute_stimulus_analytics(contexts: list[QuestionContext]) -> StimulusAnalytics | None:
    """
    Aggregate performance on stimulus-bearing questions.

    Returns:
        StimulusAnalytics, or None when the class has no stimulus questions
        ("not applicable", as opposed to zero activity)
    """
    stimulus_contexts = [ctx for ctx in contexts if ctx.question.has_stimulus]
    if not stimulus_contexts:
        return None

    by_type: BucketMap[StimulusBucket] = BucketMap(StimulusBucket)
    by_complexity: BucketMap[StimulusBucket] = BucketMap(StimulusBucket)
    overall = StimulusBucket(key="all")

    for ctx in stimulus_contexts:
        meta = ctx.question.stimulus_meta
        overall.add(ctx)
        for stimulus_type in meta.types:
            by_type[stimulus_type].add(ctx)
        by_complexity[meta.complexity or "unknown"].add(ctx)

    summary = overall.finalize()
    return StimulusAnalytics(
        total_questions=summary.count,
        attempted_questions=summary.attempted,
        correct_questions=summary.correct,
        accuracy=summary.accuracy,
        by_type=[b.finalize() for b in by_type.values()],
        by_complexity=[b.finalize() for b in by_complexity.values()],
    )
