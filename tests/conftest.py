"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import pytest
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from practice_analytics.attempts.models import QuestionAttempt  # noqa: E402
from practice_analytics.bank.models import (  # noqa: E402
    ClassData,
    Question,
    QuestionMetadata,
    StimulusMeta,
    Subtopic,
    Unit,
)
from practice_analytics.bank.normalize import normalize_class_data  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def sample_bank_raw():
    """Provide a raw question bank in the mixed legacy shapes found on disk."""
    return {
        "className": "AP Calculus BC",
        "units": [
            {
                "unitName": "Limits",
                "subtopics": [
                    {
                        "subtopicName": "Definition",
                        "questions": [
                            {
                                "id": "lim-1",
                                "questionText": "What is lim x->0 of sin(x)/x?",
                                "options": ["0", "1", "Undefined", "Infinity"],
                                "correctAnswerId": "B",
                                "metadata": {
                                    "difficulty": "easy",
                                    "cognitiveLevel": "knowledge",
                                    "skillTags": ["limits"],
                                },
                            },
                            {
                                "id": "lim-2",
                                "question": "Evaluate lim x->2 of (x^2-4)/(x-2).",
                                "options": [
                                    {"id": "a", "content": "0"},
                                    {"id": "b", "content": "4"},
                                ],
                                "correctOptionId": "b",
                                "commonMistakePatterns": ["sign error"],
                                "metadata": {
                                    "difficulty": "Medium",
                                    "cognitiveLevel": "Application",
                                    "skillTags": ["limits", "algebra"],
                                },
                            },
                        ],
                    }
                ],
            },
            {
                "name": "Derivatives",
                "subtopics": [
                    {
                        "name": "Graphs",
                        "questions": [
                            {
                                "id": "gr-1",
                                "questionText": "Using the graph and table, find f'(3).",
                                "answer": "C",
                                "stimulus": [
                                    {"type": "Graph", "label": "Figure 1", "data": [[0, 1], [3, 4]]},
                                    {"type": "table", "columns": ["x", "f(x)"], "rows": [[3, 4]]},
                                ],
                                "metadata": {"skillTags": ["graph_reading"]},
                            },
                            {
                                "questionText": "Legacy question without an id",
                                "metadata": {"difficulty": "Hard"},
                            },
                        ],
                    }
                ],
            },
        ],
    }


@pytest.fixture
def sample_class_data(sample_bank_raw):
    """Provide the normalized sample bank."""
    return normalize_class_data(sample_bank_raw, "AP Calculus BC")


@pytest.fixture
def make_question():
    """Factory for canonical questions."""

    def _make(
        question_id,
        skills=None,
        difficulty="Medium",
        cognitive_level="Application",
        mistakes=None,
        stimulus_types=None,
        complexity="low",
    ):
        stimulus_meta = None
        if stimulus_types:
            stimulus_meta = StimulusMeta(
                has_stimulus=True, types=list(stimulus_types), complexity=complexity
            )
        return Question(
            id=question_id,
            question_text=f"Question {question_id}",
            common_mistake_patterns=list(mistakes or []),
            metadata=QuestionMetadata(
                difficulty=difficulty,
                cognitive_level=cognitive_level,
                skill_tags=list(skills or []),
            ),
            stimulus_meta=stimulus_meta,
        )

    return _make


@pytest.fixture
def make_bank():
    """Factory for a one-unit, one-subtopic bank from a list of questions."""

    def _make(questions, class_name="Test Class", unit_name="Unit 1", subtopic_name="Topic A"):
        return ClassData(
            class_name=class_name,
            units=[
                Unit(
                    unit_name=unit_name,
                    subtopics=[Subtopic(subtopic_name=subtopic_name, questions=list(questions))],
                )
            ],
        )

    return _make


@pytest.fixture
def make_attempt():
    """Factory for rolled-up attempts."""

    def _make(question_id, correct, attempts=1, time=30.0, streak=None, confidence=None, **kwargs):
        return QuestionAttempt(
            question_id=question_id,
            attempts=attempts,
            correct_attempts=kwargs.pop("correct_attempts", attempts if correct else 0),
            streak=streak if streak is not None else (1 if correct else 0),
            time_spent_seconds=time,
            is_correct=correct,
            status="correct" if correct else "incorrect",
            confidence=confidence,
            **kwargs,
        )

    return _make
