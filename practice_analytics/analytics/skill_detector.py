"""
Weak/Strength Skill Detector.

Ranks finalized skill stats to pick the learner's weakest and strongest skills.

Thresholds (strict on both sides, so the two lists never overlap):
- Weak: attempted at least once and accuracy < 70%
- Strength: attempted at least once and accuracy > 85%

Skills in between appear in neither list. Thresholds are never relaxed to
fill an empty list.
"""

from __future__ import annotations

from practice_analytics.analytics.collator import QuestionContext
from practice_analytics.analytics.report import SkillStat, StrengthSkill, WeakSkill


class SkillDetector:
    """Select weak and strength skills from finalized skill stats."""

    WEAK_ACCURACY_THRESHOLD = 0.70
    STRENGTH_ACCURACY_THRESHOLD = 0.85
    MAX_WEAK_SKILLS = 3
    MAX_STRENGTH_SKILLS = 3

    def __init__(
        self,
        weak_accuracy_threshold: float = WEAK_ACCURACY_THRESHOLD,
        strength_accuracy_threshold: float = STRENGTH_ACCURACY_THRESHOLD,
        max_weak_skills: int = MAX_WEAK_SKILLS,
        max_strength_skills: int = MAX_STRENGTH_SKILLS,
    ):
        """
        Initialize detector with configurable thresholds.

        Args:
            weak_accuracy_threshold: Accuracy strictly below this is weak (default 70%)
            strength_accuracy_threshold: Accuracy strictly above this is a strength (default 85%)
            max_weak_skills: Number of weakest skills kept (default 3)
            max_strength_skills: Number of strongest skills kept (default 3)
        """
        self.weak_accuracy_threshold = weak_accuracy_threshold
        self.strength_accuracy_threshold = strength_accuracy_threshold
        self.max_weak_skills = max_weak_skills
        self.max_strength_skills = max_strength_skills

    def detect_weak_skills(
        self, skills: list[SkillStat], contexts: list[QuestionContext]
    ) -> list[WeakSkill]:
        """
        Detect the lowest-accuracy skills.

        Args:
            skills: Finalized skill stats
            contexts: Collated questions, used for review keys and confidence

        Returns:
            Up to max_weak_skills WeakSkills, weakest first
        """
        candidates = [
            s
            for s in skills
            if s.attempted_questions > 0 and s.accuracy < self.weak_accuracy_threshold
        ]
        candidates.sort(key=lambda s: s.accuracy)

        questions_by_skill: dict[str, list[QuestionContext]] = {}
        for ctx in contexts:
            for tag in ctx.question.skill_tags:
                questions_by_skill.setdefault(tag, []).append(ctx)

        weak = []
        for skill in candidates[: self.max_weak_skills]:
            skill_questions = questions_by_skill.get(skill.skill, [])

            confidences = [
                ctx.attempt.confidence
                for ctx in skill_questions
                if ctx.attempt is not None and ctx.attempt.confidence is not None
            ]
            avg_confidence = sum(confidences) / len(confidences) if confidences else None

            weak.append(
                WeakSkill(
                    skill=skill.skill,
                    accuracy=skill.accuracy,
                    mastery=skill.mastery,
                    mistake_count=sum(skill.mistake_counts.values()),
                    avg_time_seconds=skill.avg_time_seconds,
                    confidence=avg_confidence,
                    weak_score=1.0 - skill.accuracy,
                    question_ids=[
                        ctx.key for ctx in skill_questions if ctx.attempt is None or ctx.incorrect
                    ],
                )
            )
        return weak

    def detect_strength_skills(self, skills: list[SkillStat]) -> list[StrengthSkill]:
        """
        Detect the highest-accuracy skills.

        Returns:
            Up to max_strength_skills StrengthSkills, strongest first
        """
        candidates = [
            s
            for s in skills
            if s.attempted_questions > 0 and s.accuracy > self.strength_accuracy_threshold
        ]
        candidates.sort(key=lambda s: s.accuracy, reverse=True)

        return [
            StrengthSkill(
                skill=s.skill,
                accuracy=s.accuracy,
                mastery=s.mastery,
                strength_score=s.accuracy * 0.5 + s.mastery * 0.5,
            )
            for s in candidates[: self.max_strength_skills]
        ]
