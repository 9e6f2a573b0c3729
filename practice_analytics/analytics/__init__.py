"""
Analytics pipeline: collate, aggregate, finalize, detect, select.
"""
from practice_analytics.analytics.aggregator import AggregationResult, aggregate
from practice_analytics.analytics.collator import QuestionContext, collate_questions
from practice_analytics.analytics.engine import (
    AnalyticsEngine,
    AnalyticsService,
    AnalyticsThresholds,
)
from practice_analytics.analytics.finalizer import FinalizedMetrics, finalize
from practice_analytics.analytics.practice_selector import select_practice_questions
from practice_analytics.analytics.report import AnalyticsReport
from practice_analytics.analytics.skill_detector import SkillDetector
from practice_analytics.analytics.stimulus import compute_stimulus_analytics
from practice_analytics.analytics.suggestions import suggest_next_questions

__all__ = [
    # Engine
    "AnalyticsEngine",
    "AnalyticsService",
    "AnalyticsThresholds",
    "AnalyticsReport",
    # Pipeline stages
    "AggregationResult",
    "FinalizedMetrics",
    "QuestionContext",
    "SkillDetector",
    "aggregate",
    "collate_questions",
    "compute_stimulus_analytics",
    "finalize",
    "select_practice_questions",
    "suggest_next_questions",
]
