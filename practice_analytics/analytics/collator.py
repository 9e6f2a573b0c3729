"""
Record Collator.

Flattens the Class → Unit → Subtopic → Question tree into one ordered list of
QuestionContext records and joins each question to the learner's attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from practice_analytics.attempts.models import QuestionAttempt
from practice_analytics.bank.models import ClassData, Question


@dataclass(frozen=True)
class QuestionContext:
    """A question with its position in the bank and the learner's attempt."""

    key: str
    unit_name: str
    subtopic_name: str
    question: Question
    attempt: QuestionAttempt | None = None

    @property
    def attempted(self) -> bool:
        return self.attempt is not None

    @property
    def correct(self) -> bool:
        return self.attempt is not None and self.attempt.is_correct

    @property
    def incorrect(self) -> bool:
        return self.attempt is not None and not self.attempt.is_correct


def build_question_key(
    class_name: str, unit_name: str, subtopic_name: str, index: int, question: Question
) -> str:
    """
    Return the question's stable key.

    Legacy questions without an id get a positional key
    "{class}:{unit}:{subtopic}:{index}", stable for a fixed bank ordering.
    """
    if question.id:
        return question.id
    return f"{class_name}:{unit_name}:{subtopic_name}:{index}"


def collate_questions(
    class_data: ClassData,
    attempts: Iterable[QuestionAttempt],
    class_name: str | None = None,
) -> list[QuestionContext]:
    """
    Collate every question in the bank with its attempt.

    Args:
        class_data: Normalized question bank
        attempts: The learner's attempts (a later duplicate key wins)
        class_name: Class name used for positional keys (defaults to class_data.class_name)

    Returns:
        QuestionContexts in bank order
    """
    class_name = class_name or class_data.class_name
    attempt_map = {a.question_id: a for a in attempts}

    contexts = []
    for unit in class_data.units:
        for subtopic in unit.subtopics:
            for idx, question in enumerate(subtopic.questions):
                key = build_question_key(
                    class_name, unit.unit_name, subtopic.subtopic_name, idx, question
                )
                contexts.append(
                    QuestionContext(
                        key=key,
                        unit_name=unit.unit_name,
                        subtopic_name=subtopic.subtopic_name,
                        question=question,
                        attempt=attempt_map.get(key),
                    )
                )
    return contexts
