"""
Practice Set Selector.

Builds the deduplicated, priority-ordered list of question keys to review.
Each pass only adds keys or raises priorities, never removes or lowers:

1. Review keys of the top weak skills, priority 1 - accuracy
2. Any other question tagged with one of those skills, fixed lower priority
3. Safety net: every question answered incorrectly, with a priority floor

The safety net runs regardless of weak-skill results, so sparse or missing
skill tags can never hide a wrong answer from practice.
"""

from __future__ import annotations

from practice_analytics.analytics.collator import QuestionContext
from practice_analytics.analytics.report import WeakSkill

TOP_WEAK_SKILLS = 5
TAG_MATCH_PRIORITY = 0.5
INCORRECT_PRIORITY_FLOOR = 0.2
PRACTICE_LIMIT = 20


def select_practice_questions(
    weak_skills: list[WeakSkill],
    contexts: list[QuestionContext],
    top_weak_skills: int = TOP_WEAK_SKILLS,
    tag_priority: float = TAG_MATCH_PRIORITY,
    incorrect_floor: float = INCORRECT_PRIORITY_FLOOR,
    limit: int = PRACTICE_LIMIT,
) -> list[str]:
    """
    Select practice question keys, highest priority first.

    Args:
        weak_skills: Detector output, weakest first
        contexts: All collated questions
        top_weak_skills: Weak skills considered
        tag_priority: Priority for tag-only matches
        incorrect_floor: Minimum priority of an incorrectly answered question
        limit: Maximum keys returned

    Returns:
        Unique question keys, at most `limit`
    """
    # dict preserves first-insertion order for tie-breaking
    priorities: dict[str, float] = {}

    top = weak_skills[:top_weak_skills]
    for weak in top:
        score = 1.0 - weak.accuracy
        for key in weak.question_ids:
            priorities[key] = max(priorities.get(key, score), score)

    weak_tags = {w.skill for w in top}
    if weak_tags:
        for ctx in contexts:
            if ctx.key in priorities:
                continue
            if any(tag in weak_tags for tag in ctx.question.skill_tags):
                priorities[ctx.key] = tag_priority

    for ctx in contexts:
        if ctx.incorrect:
            priorities[ctx.key] = max(priorities.get(ctx.key, incorrect_floor), incorrect_floor)

    ordered = sorted(priorities, key=lambda key: priorities[key], reverse=True)
    return ordered[:limit]
