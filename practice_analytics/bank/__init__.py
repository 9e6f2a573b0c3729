"""
Question bank: canonical models, legacy normalization and the cached loader.
"""
from practice_analytics.bank.loader import (
    QuestionBankCache,
    QuestionBankLoader,
    class_filename,
    default_cache,
)
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
from practice_analytics.bank.normalize import (
    derive_stimulus_meta,
    normalize_class_data,
    normalize_question,
)

__all__ = [
    # Loader
    "QuestionBankCache",
    "QuestionBankLoader",
    "class_filename",
    "default_cache",
    # Models
    "ClassData",
    "Question",
    "QuestionMetadata",
    "QuestionOption",
    "StimulusItem",
    "StimulusMeta",
    "Subtopic",
    "Unit",
    # Normalization
    "derive_stimulus_meta",
    "normalize_class_data",
    "normalize_question",
]
