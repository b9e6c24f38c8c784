"""
Content hashing and key generation for extracted phrases.

Two phrases are the same phrase when their normalized source text hashes
match; the hash is what the (project_id, source_hash) constraint enforces.
"""
import hashlib
import re
from typing import Optional

DEFAULT_KEY_MAX_LENGTH = 40

_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(text: Optional[str]) -> str:
    """Trim outer whitespace and lowercase. Internal whitespace is kept."""
    if text is None:
        return ""
    return text.strip().lower()


def _digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def compute_source_hash(source_text: str) -> str:
    """
    Hash a phrase's source text.

    Args:
        source_text: Raw source string as scraped

    Returns:
        64-character hex SHA-256 digest of the normalized text
    """
    return _digest(normalize_text(source_text))


def compute_content_hash(source_text: str, context: Optional[str]) -> Optional[str]:
    """
    Hash source text together with its context.

    Returns None when there is no non-blank context.
    """
    normalized_context = normalize_text(context)
    if not normalized_context:
        return None
    return _digest(f"{normalize_text(source_text)}:{normalized_context}")


def generate_phrase_key(source_text: str, max_length: int = DEFAULT_KEY_MAX_LENGTH) -> str:
    """
    Build a human-readable slug from source text.

    "Welcome back, {{name}}!" -> "welcome-back-name"

    Keys are not unique: two different texts can slug to the same key.
    Text made only of punctuation falls back to a hash-derived key.
    """
    slug = _NON_WORD.sub("", source_text.lower()).strip()
    slug = _WHITESPACE.sub("-", slug)[:max_length]
    if not slug:
        slug = f"phrase-{compute_source_hash(source_text)[:12]}"
    return slug
