"""
Question bank domain models.

Canonical, already-normalized shape of the hierarchical question bank:
Class → Unit → Subtopic → Question. Legacy field variants are resolved in
`practice_analytics.bank.normalize` before anything here is constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class QuestionOption:
    """A single answer option ("A", "B", ...)."""

    id: str
    content: str


@dataclass
class QuestionMetadata:
    """Classification metadata attached to every question."""

    difficulty: str = "Medium"
    cognitive_level: str = "Application"
    skill_tags: list[str] = field(default_factory=list)


@dataclass
class StimulusItem:
    """Auxiliary context (text passage, table, graph) a question references."""

    type: str
    label: str = ""
    content: Any = None


@dataclass
class StimulusMeta:
    """Summary of a question's stimulus bundle."""

    has_stimulus: bool = False
    types: list[str] = field(default_factory=list)
    complexity: str | None = None


@dataclass
class Question:
    """A single bank question. Read-only to the analytics engine."""

    id: str
    question_text: str = ""
    options: list[QuestionOption] = field(default_factory=list)
    correct_answer_id: str = ""
    explanation: str = ""
    common_mistake_patterns: list[str] = field(default_factory=list)
    metadata: QuestionMetadata = field(default_factory=QuestionMetadata)
    stimulus: list[StimulusItem] = field(default_factory=list)
    stimulus_meta: StimulusMeta | None = None

    @property
    def skill_tags(self) -> list[str]:
        return self.metadata.skill_tags

    @property
    def has_stimulus(self) -> bool:
        return self.stimulus_meta is not None and self.stimulus_meta.has_stimulus


@dataclass
class Subtopic:
    subtopic_name: str
    questions: list[Question] = field(default_factory=list)


@dataclass
class Unit:
    unit_name: str
    subtopics: list[Subtopic] = field(default_factory=list)


@dataclass
class ClassData:
    """One class's full question bank."""

    class_name: str
    units: list[Unit] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return sum(len(s.questions) for u in self.units for s in u.subtopics)
