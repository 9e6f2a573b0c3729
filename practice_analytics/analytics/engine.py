"""
Analytics Engine.

Runs the full pipeline for one learner in one class:

    collate → aggregate → finalize → weak/strength detection
            → practice selection → suggestions → stimulus analytics

Every stage is a pure function of its inputs; the engine only wires them
together and packages the result as an AnalyticsReport. AnalyticsService adds
the I/O boundary (question bank loader and attempt store).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from loguru import logger

from config import Settings, get_settings
from practice_analytics.analytics.aggregator import aggregate
from practice_analytics.analytics.collator import collate_questions
from practice_analytics.analytics.finalizer import (
    FRAGILE_MAX_ACCURACY,
    FRAGILE_MAX_STREAK,
    FRAGILE_MIN_ATTEMPTED,
    finalize,
)
from practice_analytics.analytics.practice_selector import (
    INCORRECT_PRIORITY_FLOOR,
    PRACTICE_LIMIT,
    TAG_MATCH_PRIORITY,
    TOP_WEAK_SKILLS,
    select_practice_questions,
)
from practice_analytics.analytics.report import AnalyticsReport
from practice_analytics.analytics.skill_detector import SkillDetector
from practice_analytics.analytics.stimulus import compute_stimulus_analytics
from practice_analytics.analytics.suggestions import SUGGESTION_LIMIT, suggest_next_questions
from practice_analytics.attempts.models import QuestionAttempt
from practice_analytics.attempts.store import AttemptStore
from practice_analytics.bank.loader import QuestionBankLoader
from practice_analytics.bank.models import ClassData


@dataclass(frozen=True)
class AnalyticsThresholds:
    """Tunable constants of the analytics pipeline."""

    weak_accuracy_threshold: float = SkillDetector.WEAK_ACCURACY_THRESHOLD
    strength_accuracy_threshold: float = SkillDetector.STRENGTH_ACCURACY_THRESHOLD
    max_weak_skills: int = SkillDetector.MAX_WEAK_SKILLS
    max_strength_skills: int = SkillDetector.MAX_STRENGTH_SKILLS
    practice_top_weak_skills: int = TOP_WEAK_SKILLS
    practice_question_limit: int = PRACTICE_LIMIT
    practice_tag_priority: float = TAG_MATCH_PRIORITY
    practice_incorrect_floor: float = INCORRECT_PRIORITY_FLOOR
    fragile_min_attempted: int = FRAGILE_MIN_ATTEMPTED
    fragile_max_accuracy: float = FRAGILE_MAX_ACCURACY
    fragile_max_streak: int = FRAGILE_MAX_STREAK
    suggestion_limit: int = SUGGESTION_LIMIT

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AnalyticsThresholds":
        settings = settings or get_settings()
        config = settings.get_analytics_config()
        # Fragile accuracy tracks the weak threshold
        return cls(fragile_max_accuracy=config["weak_accuracy_threshold"], **config)


class AnalyticsEngine:
    """Compute an AnalyticsReport from a question bank and a learner's attempts."""

    def __init__(self, thresholds: AnalyticsThresholds | None = None):
        self.thresholds = thresholds or AnalyticsThresholds()
        self.detector = SkillDetector(
            weak_accuracy_threshold=self.thresholds.weak_accuracy_threshold,
            strength_accuracy_threshold=self.thresholds.strength_accuracy_threshold,
            max_weak_skills=self.thresholds.max_weak_skills,
            max_strength_skills=self.thresholds.max_strength_skills,
        )

    def compute(
        self,
        class_data: ClassData,
        attempts: Iterable[QuestionAttempt],
        class_name: str | None = None,
    ) -> AnalyticsReport:
        """
        Run the full analytics pipeline.

        Same inputs always produce the same report; neither input is mutated.

        Args:
            class_data: Normalized question bank
            attempts: The learner's attempts (unknown question ids are ignored)
            class_name: Requested class name, used for positional question keys

        Returns:
            AnalyticsReport
        """
        t = self.thresholds
        contexts = collate_questions(class_data, attempts, class_name=class_name)
        result = aggregate(contexts)
        metrics = finalize(
            result,
            fragile_min_attempted=t.fragile_min_attempted,
            fragile_max_accuracy=t.fragile_max_accuracy,
            fragile_max_streak=t.fragile_max_streak,
        )

        weak_skills = self.detector.detect_weak_skills(metrics.skills, contexts)
        strength_skills = self.detector.detect_strength_skills(metrics.skills)
        practice_questions = select_practice_questions(
            weak_skills,
            contexts,
            top_weak_skills=t.practice_top_weak_skills,
            tag_priority=t.practice_tag_priority,
            incorrect_floor=t.practice_incorrect_floor,
            limit=t.practice_question_limit,
        )
        suggestions = suggest_next_questions(contexts, metrics.skills, limit=t.suggestion_limit)

        logger.debug(
            f"Analytics for {class_name or class_data.class_name}: "
            f"{result.attempted_questions}/{result.total_questions} attempted, "
            f"{len(weak_skills)} weak, {len(strength_skills)} strong, "
            f"{len(practice_questions)} practice questions"
        )
        if not practice_questions and any(ctx.incorrect for ctx in contexts):
            logger.warning("Incorrect answers present but practice set is empty")

        return AnalyticsReport(
            summary=metrics.summary,
            skills=metrics.skills,
            units=metrics.units,
            subtopics=metrics.subtopics,
            difficulties=metrics.difficulties,
            cognitive=metrics.cognitive,
            mistake_patterns=metrics.mistake_patterns,
            streaks=metrics.streaks,
            fragile_skills=metrics.fragile_skills,
            suggestions=suggestions,
            unanswered_questions=result.unanswered_questions,
            weak_skills=weak_skills,
            strength_skills=strength_skills,
            practice_questions=practice_questions,
            stimulus_analytics=compute_stimulus_analytics(contexts),
        )


class AnalyticsService:
    """
    Load a class bank and a learner's attempts, then run the engine.

    Example:
        service = AnalyticsService.from_settings()
        report = await service.compute_advanced_analytics("user-1", "AP Biology")
    """

    def __init__(
        self,
        loader: QuestionBankLoader,
        store: AttemptStore,
        engine: AnalyticsEngine | None = None,
    ):
        self.loader = loader
        self.store = store
        self.engine = engine or AnalyticsEngine()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AnalyticsService":
        settings = settings or get_settings()
        return cls(
            loader=QuestionBankLoader.from_settings(settings),
            store=AttemptStore.from_settings(settings),
            engine=AnalyticsEngine(AnalyticsThresholds.from_settings(settings)),
        )

    async def compute_advanced_analytics(
        self, user_id: str, class_name: str, refresh: bool = False
    ) -> AnalyticsReport | None:
        """
        Compute the analytics report for a learner in a class.

        Args:
            user_id: The learner identifier
            class_name: Name of the class
            refresh: Bypass the question bank cache

        Returns:
            AnalyticsReport, or None when the class bank is unavailable
        """
        class_data = await self.loader.load(class_name, refresh=refresh)
        if class_data is None:
            logger.warning(f"No question bank for {class_name}; skipping analytics for {user_id}")
            return None

        attempts = await self.store.fetch_attempts(user_id)
        return self.engine.compute(class_data, attempts, class_name=class_name)
