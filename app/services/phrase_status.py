"""
Completion categories derived from a phrase's translations.

These are computed on read and never written to the phrase's lifecycle
status column.
"""
import enum
from typing import Dict, List, Optional, Set

from app.models.translation import TranslationMap, TranslationStatus


class CompletionCategory(str, enum.Enum):
    UNTRANSLATED = "untranslated"
    READY = "ready"
    NEEDS_ATTENTION = "needs_attention"
    PENDING = "pending"


class OverallStatusFilter(str, enum.Enum):
    """Values accepted by the by-status phrase query"""
    UNTRANSLATED = "untranslated"
    READY = "ready"
    NEEDS_ATTENTION = "needs_attention"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVIEW = "needs_review"


_ATTENTION = {TranslationStatus.REJECTED, TranslationStatus.NEEDS_REVIEW}


def derive_categories(translations: TranslationMap) -> Set[CompletionCategory]:
    """
    Derive completion categories for a translation map.

    A phrase can be in more than one category at once, e.g. one locale
    pending and another rejected is both pending and needs_attention.
    """
    if not translations:
        return {CompletionCategory.UNTRANSLATED}

    statuses = list(translations.statuses().values())
    categories: Set[CompletionCategory] = set()
    if all(status == TranslationStatus.APPROVED for status in statuses):
        categories.add(CompletionCategory.READY)
    if any(status in _ATTENTION for status in statuses):
        categories.add(CompletionCategory.NEEDS_ATTENTION)
    if CompletionCategory.READY not in categories and any(
        status == TranslationStatus.PENDING for status in statuses
    ):
        categories.add(CompletionCategory.PENDING)
    return categories


def matches_status(
    translations: TranslationMap,
    status: OverallStatusFilter,
    locale: Optional[str] = None,
) -> bool:
    """
    Decide whether a phrase matches an overall-status filter.

    With a locale, only that locale's entry is considered: untranslated
    means no entry, ready means the entry is approved. Without a locale the
    filter is aggregated over all entries.
    """
    status = OverallStatusFilter(status)

    if locale is not None:
        entry = translations.get(locale)
        if status == OverallStatusFilter.UNTRANSLATED:
            return entry is None
        if entry is None:
            return False
        if status == OverallStatusFilter.READY:
            return entry.status == TranslationStatus.APPROVED
        if status == OverallStatusFilter.NEEDS_ATTENTION:
            return entry.status in _ATTENTION
        return entry.status.value == status.value

    if status == OverallStatusFilter.UNTRANSLATED:
        return len(translations) == 0
    if status == OverallStatusFilter.READY:
        return CompletionCategory.READY in derive_categories(translations)
    if status == OverallStatusFilter.NEEDS_ATTENTION:
        return CompletionCategory.NEEDS_ATTENTION in derive_categories(translations)
    return any(entry.status.value == status.value for entry in translations.values())


def summarize_translations(translations: TranslationMap) -> Dict[str, object]:
    """Per-phrase summary used in API responses."""
    categories: List[str] = sorted(category.value for category in derive_categories(translations))
    return {
        "locales": list(translations.keys()),
        "status_counts": translations.status_counts(),
        "categories": categories,
    }
