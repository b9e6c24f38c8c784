"""
ORM models and JSON value types for the phrase store.
"""

from .project import Project
from .phrase import Phrase, PhraseStatus
from .translation import (
    TranslationStatus,
    TranslationEntry,
    TranslationMap,
    TranslationMapType,
)
from .occurrence import (
    PhraseLocation,
    PhraseOccurrences,
    OccurrencesType,
)

__all__ = [
    "Project",
    "Phrase",
    "PhraseStatus",
    "TranslationStatus",
    "TranslationEntry",
    "TranslationMap",
    "TranslationMapType",
    "PhraseLocation",
    "PhraseOccurrences",
    "OccurrencesType",
]
