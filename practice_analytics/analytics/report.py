"""
Analytics report models.

The report is freshly built on every engine run and never persisted; these
models define its serialized shape.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class Summary(BaseModel):
    """Class-wide totals for one learner."""

    total_questions: int
    attempted_questions: int
    correct_questions: int
    unanswered: int
    avg_accuracy: float = Field(..., ge=0, le=1)
    avg_time_seconds: float = Field(..., ge=0)


class BucketStat(BaseModel):
    """Finalized stats for a unit, subtopic, difficulty or cognitive level."""

    key: str
    total_questions: int
    attempted_questions: int
    correct_questions: int
    attempts: int
    accuracy: float = Field(..., ge=0, le=1)
    avg_time_seconds: float = Field(..., ge=0)
    unanswered: int


class SubtopicStat(BucketStat):
    pass


class UnitStat(BucketStat):
    subtopics: list[SubtopicStat] = Field(default_factory=list)


class SkillStat(BaseModel):
    """Finalized stats for one skill tag."""

    skill: str
    total_questions: int
    attempted_questions: int
    correct_questions: int
    attempts: int
    accuracy: float = Field(..., ge=0, le=1)
    avg_time_seconds: float = Field(..., ge=0)
    streak: int
    mastery: float = Field(..., ge=0, le=1)
    mistake_counts: dict[str, int] = Field(default_factory=dict)
    fragile: bool = False


class MistakePattern(BaseModel):
    skill: str
    pattern: str
    count: int


class StreakInsight(BaseModel):
    skill: str
    best: int
    current: int


class Suggestion(BaseModel):
    """A gentle next step, distinct from the remediation practice set."""

    question_id: str
    question_text: str
    unit_name: str
    subtopic_name: str
    reason: str


class WeakSkill(BaseModel):
    skill: str
    accuracy: float = Field(..., ge=0, le=1)
    mastery: float
    mistake_count: int
    avg_time_seconds: float
    confidence: float | None = Field(None, description="Average self-reported confidence (1-5)")
    weak_score: float = Field(..., description="Practice priority, 1 - accuracy")
    question_ids: list[str] = Field(
        default_factory=list, description="Skill questions unanswered or answered incorrectly"
    )


class StrengthSkill(BaseModel):
    skill: str
    accuracy: float = Field(..., ge=0, le=1)
    mastery: float
    strength_score: float


class StimulusGroupStat(BaseModel):
    """Stats for one stimulus type or complexity tier."""

    key: str
    count: int
    attempted: int
    correct: int
    accuracy: float = Field(..., ge=0, le=1)
    avg_struggle_score: float = Field(..., ge=0, le=1)
    avg_time_seconds: float = Field(..., ge=0)


class StimulusAnalytics(BaseModel):
    total_questions: int
    attempted_questions: int
    correct_questions: int
    accuracy: float = Field(..., ge=0, le=1)
    by_type: list[StimulusGroupStat] = Field(default_factory=list)
    by_complexity: list[StimulusGroupStat] = Field(default_factory=list)


class AnalyticsReport(BaseModel):
    """Full analytics for one learner in one class."""

    summary: Summary
    skills: list[SkillStat]
    units: list[UnitStat]
    subtopics: list[SubtopicStat]
    difficulties: list[BucketStat]
    cognitive: list[BucketStat]
    mistake_patterns: list[MistakePattern]
    streaks: list[StreakInsight]
    fragile_skills: list[str]
    suggestions: list[Suggestion]
    unanswered_questions: list[str]
    weak_skills: list[WeakSkill]
    strength_skills: list[StrengthSkill]
    practice_questions: list[str]
    stimulus_analytics: StimulusAnalytics | None = None
