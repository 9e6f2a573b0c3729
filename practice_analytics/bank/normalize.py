"""
Question bank normalization.

Question bank JSON is hand-edited and has accumulated several historical
shapes. This module is the single place where legacy field names are
resolved into the canonical models of `practice_analytics.bank.models`:

- unit name: `unitName` or `name`
- subtopic name: `subtopicName` or `name`
- question text: `questionText` or `question`
- correct answer: `correctAnswerId`, `correctOptionId` or `answer`
- options: plain strings or `{id, content}` objects
- cognitive level: legacy taxonomy aliases (`knowledge`, `apply`, ...)
- stimulus meta: explicit `stimulusMeta` or derived from `stimulus` items

Nothing downstream of this module should look at raw dicts.
"""

from __future__ import annotations

import string
from typing import Any

from practice_analytics.bank.models import (
    ClassData,
    Question,
    QuestionMetadata,
    QuestionOption,
    StimulusItem,
    StimulusMeta,
    Subtopic,
    Unit,
)
from practice_analytics.exceptions import QuestionBankError

DEFAULT_DIFFICULTY = "Medium"
DEFAULT_COGNITIVE_LEVEL = "Application"

COGNITIVE_LEVELS = ("Recall", "Application", "Analysis", "Synthesis", "Evaluation")

# Legacy Bloom-style labels found in older banks
COGNITIVE_ALIASES = {
    "knowledge": "Recall",
    "remember": "Recall",
    "remembering": "Recall",
    "comprehension": "Application",
    "understand": "Application",
    "apply": "Application",
    "analyze": "Analysis",
    "analyse": "Analysis",
    "create": "Synthesis",
    "evaluate": "Evaluation",
}

STIMULUS_COMPLEXITY_TIERS = ("low", "medium", "high")


def _first(raw: dict[str, Any], *names: str, default: Any = "") -> Any:
    """Return the first truthy value among the given keys."""
    for name in names:
        value = raw.get(name)
        if value:
            return value
    return default


def normalize_cognitive_level(value: str | None) -> str:
    """
    Map a raw cognitive level onto the canonical taxonomy.

    Matching is case-insensitive. Unknown labels are kept verbatim so they
    still form their own bucket rather than being silently merged.
    """
    if not value or not str(value).strip():
        return DEFAULT_COGNITIVE_LEVEL
    cleaned = str(value).strip()
    lowered = cleaned.lower()
    for level in COGNITIVE_LEVELS:
        if level.lower() == lowered:
            return level
    return COGNITIVE_ALIASES.get(lowered, cleaned)


def normalize_difficulty(value: str | None) -> str:
    if not value or not str(value).strip():
        return DEFAULT_DIFFICULTY
    return str(value).strip().capitalize()


def _normalize_skill_tags(value: Any) -> list[str]:
    """Clean skill tags, dropping blanks and repeats (first occurrence wins)."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    tags = [str(tag).strip() for tag in value if tag and str(tag).strip()]
    return list(dict.fromkeys(tags))


def _normalize_options(raw_options: Any) -> list[QuestionOption]:
    if not isinstance(raw_options, list):
        return []
    options = []
    for idx, opt in enumerate(raw_options):
        letter = string.ascii_uppercase[idx % 26]
        if isinstance(opt, dict):
            options.append(
                QuestionOption(id=str(opt.get("id") or letter), content=str(opt.get("content", "")))
            )
        else:
            options.append(QuestionOption(id=letter, content=str(opt)))
    return options


def _normalize_stimulus_items(raw_items: Any) -> list[StimulusItem]:
    if not isinstance(raw_items, list):
        return []
    items = []
    for item in raw_items:
        if not isinstance(item, dict) or not item.get("type"):
            continue
        content = item.get("content")
        if content is None and "rows" in item:
            content = {"columns": item.get("columns", []), "rows": item.get("rows", [])}
        if content is None and "data" in item:
            content = item.get("data")
        items.append(
            StimulusItem(
                type=str(item["type"]).lower(),
                label=str(item.get("label", "")),
                content=content,
            )
        )
    return items


def derive_stimulus_meta(items: list[StimulusItem]) -> StimulusMeta:
    """
    Derive stimulus metadata from the stimulus items themselves.

    Complexity is scored as the number of items, plus one when more than one
    kind of item is mixed (e.g. a passage read against a table):
    score 1 is "low", 2 is "medium", 3 or more is "high".
    """
    if not items:
        return StimulusMeta(has_stimulus=False)

    types: list[str] = []
    for item in items:
        if item.type not in types:
            types.append(item.type)

    score = len(items) + (1 if len(types) > 1 else 0)
    if score <= 1:
        complexity = "low"
    elif score == 2:
        complexity = "medium"
    else:
        complexity = "high"

    return StimulusMeta(has_stimulus=True, types=types, complexity=complexity)


def _normalize_stimulus_meta(raw_meta: Any, items: list[StimulusItem]) -> StimulusMeta | None:
    if isinstance(raw_meta, dict):
        has_stimulus = bool(raw_meta.get("hasStimulus", raw_meta.get("has_stimulus", False)))
        raw_types = raw_meta.get("types")
        if not isinstance(raw_types, list):
            raw_types = [raw_types] if raw_types else []
        types = list(dict.fromkeys(str(t).lower() for t in raw_types if t))
        complexity = raw_meta.get("complexity")
        meta = StimulusMeta(
            has_stimulus=has_stimulus,
            types=types,
            complexity=str(complexity).lower() if complexity else None,
        )
    else:
        meta = derive_stimulus_meta(items)

    if not meta.has_stimulus:
        return None
    if meta.complexity is None:
        meta.complexity = derive_stimulus_meta(items).complexity or "low"
    if not meta.types:
        meta.types = derive_stimulus_meta(items).types
    return meta


def normalize_question(raw: dict[str, Any]) -> Question:
    """Build a canonical Question from one raw question record."""
    raw_metadata = raw.get("metadata")
    if not isinstance(raw_metadata, dict):
        raw_metadata = {}
    raw_mistakes = raw.get("commonMistakePatterns")
    if not isinstance(raw_mistakes, list):
        raw_mistakes = []
    metadata = QuestionMetadata(
        difficulty=normalize_difficulty(raw_metadata.get("difficulty")),
        cognitive_level=normalize_cognitive_level(raw_metadata.get("cognitiveLevel")),
        skill_tags=_normalize_skill_tags(raw_metadata.get("skillTags")),
    )

    stimulus = _normalize_stimulus_items(raw.get("stimulus"))
    stimulus_meta = _normalize_stimulus_meta(raw.get("stimulusMeta"), stimulus)

    return Question(
        id=str(raw.get("id") or ""),
        question_text=str(_first(raw, "questionText", "question")),
        options=_normalize_options(raw.get("options")),
        correct_answer_id=str(_first(raw, "correctAnswerId", "correctOptionId", "answer")),
        explanation=str(raw.get("explanation") or ""),
        common_mistake_patterns=[str(p) for p in raw_mistakes if p],
        metadata=metadata,
        stimulus=stimulus,
        stimulus_meta=stimulus_meta,
    )


def _records(value: Any, kind: str, class_name: str) -> list[dict[str, Any]]:
    """Return a list of raw records, rejecting anything that is not a list of objects."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise QuestionBankError(class_name, f"expected a list of {kind}s, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, dict):
            raise QuestionBankError(
                class_name, f"expected each {kind} to be an object, got {type(item).__name__}"
            )
    return value


def normalize_class_data(raw: Any, class_name: str) -> ClassData:
    """
    Normalize a raw question bank payload into ClassData.

    Args:
        raw: Parsed JSON (a dict, or a list wrapping the dict)
        class_name: Class the payload was requested for

    Returns:
        Canonical ClassData

    Raises:
        QuestionBankError: If the payload is not a bank, has malformed entries or has no units
    """
    if isinstance(raw, list):
        if not raw:
            raise QuestionBankError(class_name, "empty payload")
        raw = raw[0]
    if not isinstance(raw, dict):
        raise QuestionBankError(class_name, f"expected an object, got {type(raw).__name__}")

    units = []
    for raw_unit in _records(raw.get("units"), "unit", class_name):
        subtopics = [
            Subtopic(
                subtopic_name=str(_first(raw_sub, "subtopicName", "name")),
                questions=[
                    normalize_question(q)
                    for q in _records(raw_sub.get("questions"), "question", class_name)
                ],
            )
            for raw_sub in _records(raw_unit.get("subtopics"), "subtopic", class_name)
        ]
        units.append(Unit(unit_name=str(_first(raw_unit, "unitName", "name")), subtopics=subtopics))

    if not units:
        raise QuestionBankError(class_name, "bank contains no units")

    return ClassData(class_name=str(raw.get("className") or class_name), units=units)
