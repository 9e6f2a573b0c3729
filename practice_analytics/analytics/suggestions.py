"""
Next-question suggestions.

Gentle forward progression, separate from the remediation practice set.
Every question gets a score; the lowest scores are suggested first:

    score = (1 if last attempt correct else 0)
          + lowest accuracy among its skill tags (0.5 if unknown or untagged)
          + 0.05 × attempt count
"""

from __future__ import annotations

from practice_analytics.analytics.collator import QuestionContext
from practice_analytics.analytics.report import SkillStat, Suggestion

SUGGESTION_LIMIT = 5
UNKNOWN_SKILL_ACCURACY = 0.5


def suggestion_score(ctx: QuestionContext, skill_accuracy: dict[str, float]) -> float:
    accuracies = [
        skill_accuracy.get(tag, UNKNOWN_SKILL_ACCURACY) for tag in ctx.question.skill_tags
    ]
    lowest = min(accuracies) if accuracies else UNKNOWN_SKILL_ACCURACY
    attempts = ctx.attempt.attempts if ctx.attempt is not None else 0
    return (1.0 if ctx.correct else 0.0) + lowest + attempts * 0.05


def suggest_next_questions(
    contexts: list[QuestionContext],
    skills: list[SkillStat],
    limit: int = SUGGESTION_LIMIT,
) -> list[Suggestion]:
    """Return the `limit` lowest-scoring questions (bank order breaks ties)."""
    skill_accuracy = {s.skill: s.accuracy for s in skills}
    ranked = sorted(contexts, key=lambda ctx: suggestion_score(ctx, skill_accuracy))

    return [
        Suggestion(
            question_id=ctx.key,
            question_text=ctx.question.question_text,
            unit_name=ctx.unit_name,
            subtopic_name=ctx.subtopic_name,
            reason="Reinforce for mastery" if ctx.correct else "Target weak skill",
        )
        for ctx in ranked[:limit]
    ]
