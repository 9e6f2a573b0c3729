"""
Exception hierarchy for practice-analytics.

The analytics engine itself never raises for missing data; these cover the
collaborators at its boundary (question bank loading, attempt persistence).
"""

from __future__ import annotations


class PracticeAnalyticsError(Exception):
    """Base class for all practice-analytics errors."""


class QuestionBankError(PracticeAnalyticsError):
    """A question bank could not be fetched or parsed."""

    def __init__(self, class_name: str, reason: str):
        self.class_name = class_name
        self.reason = reason
        super().__init__(f"Question bank for {class_name!r} unavailable: {reason}")


class AttemptStoreError(PracticeAnalyticsError):
    """The attempt store failed to read or write."""


class InvalidAttemptError(PracticeAnalyticsError, ValueError):
    """An attempt being recorded carries out-of-range values."""
