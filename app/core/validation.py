"""
Input validation helpers shared by the phrase services.
"""
import re
from typing import Iterable, List

from app.core.exceptions import ValidationError

_LOCALE_PATTERN = re.compile(r'^[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]{2,8}){0,2}$')


def validate_locale_code(locale: str) -> str:
    """
    Validate a locale code such as ``fr``, ``fr-CA`` or ``zh-Hant-TW``.

    Case is preserved: locale codes are dictionary keys and must round-trip
    exactly as the client sent them.

    Raises:
        ValidationError: If the code is malformed
    """
    if locale is None:
        raise ValidationError("Locale code is required", details={"field": "locale"})

    locale = locale.strip()
    if not _LOCALE_PATTERN.match(locale):
        raise ValidationError(
            f"Invalid locale code: {locale!r}",
            details={"field": "locale", "value": locale},
        )
    return locale


def validate_locale_codes(locales: Iterable[str]) -> List[str]:
    """Validate several locale codes, dropping blanks and duplicates."""
    seen: List[str] = []
    for locale in locales:
        if locale is None or not locale.strip():
            continue
        code = validate_locale_code(locale)
        if code not in seen:
            seen.append(code)
    return seen


def validate_pagination(page: int, limit: int, max_limit: int = 1000) -> tuple[int, int]:
    """
    Validate page/limit query values.

    Returns:
        (page, limit) unchanged when valid

    Raises:
        ValidationError: If page < 1 or limit outside 1..max_limit
    """
    if page < 1:
        raise ValidationError("Page must be at least 1", details={"field": "page", "value": page})
    if limit < 1 or limit > max_limit:
        raise ValidationError(
            f"Limit must be between 1 and {max_limit}",
            details={"field": "limit", "value": limit},
        )
    return page, limit


def normalize_tag(tag: str) -> str:
    """Strip a tag value and reject empty tags."""
    if tag is None or not tag.strip():
        raise ValidationError("Tag value is required", details={"field": "tag"})
    return tag.strip()
