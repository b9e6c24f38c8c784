"""
Per-locale translation entries stored inside a phrase row.
"""
import enum
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


class TranslationStatus(str, enum.Enum):
    """Review state of a single locale's translation"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_REVIEW = "needs_review"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_iso(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class TranslationEntry:
    """One locale's translation of a phrase."""
    text: str
    status: TranslationStatus = TranslationStatus.PENDING
    is_human: bool = True
    last_modified: datetime = field(default_factory=utcnow)
    modified_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "status": self.status.value,
            "is_human": self.is_human,
            "last_modified": _to_iso(self.last_modified),
            "modified_by": self.modified_by,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": _to_iso(self.reviewed_at),
            "review_comments": self.review_comments,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationEntry":
        return cls(
            text=data.get("text", ""),
            status=TranslationStatus(data.get("status", TranslationStatus.PENDING.value)),
            is_human=bool(data.get("is_human", True)),
            last_modified=_from_iso(data.get("last_modified")) or utcnow(),
            modified_by=data.get("modified_by"),
            reviewed_by=data.get("reviewed_by"),
            reviewed_at=_from_iso(data.get("reviewed_at")),
            review_comments=data.get("review_comments"),
        )


class TranslationMap(MutableMapping):
    """
    Ordered locale -> TranslationEntry mapping with upsert semantics.

    Assigning an existing locale replaces the entry but keeps the locale's
    original position.
    """

    def __init__(self, entries: Optional[Dict[str, TranslationEntry]] = None):
        self._entries: Dict[str, TranslationEntry] = {}
        for locale, entry in (entries or {}).items():
            self[locale] = entry

    def __getitem__(self, locale: str) -> TranslationEntry:
        return self._entries[locale]

    def __setitem__(self, locale: str, entry: TranslationEntry) -> None:
        if not isinstance(entry, TranslationEntry):
            raise TypeError("TranslationMap values must be TranslationEntry instances")
        self._entries[locale] = entry

    def __delitem__(self, locale: str) -> None:
        del self._entries[locale]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TranslationMap({self._entries!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TranslationMap):
            return self._entries == other._entries
        return NotImplemented

    def upsert(
        self,
        locale: str,
        text: str,
        status: TranslationStatus = TranslationStatus.PENDING,
        is_human: bool = True,
        modified_by: Optional[str] = None,
    ) -> TranslationEntry:
        """Insert or overwrite the entry for a locale, stamping last_modified."""
        entry = TranslationEntry(
            text=text,
            status=status,
            is_human=is_human,
            last_modified=utcnow(),
            modified_by=modified_by,
        )
        self[locale] = entry
        return entry

    def statuses(self) -> Dict[str, TranslationStatus]:
        return {locale: entry.status for locale, entry in self._entries.items()}

    def status_counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in TranslationStatus}
        for entry in self._entries.values():
            counts[entry.status.value] += 1
        return counts

    def copy(self) -> "TranslationMap":
        return TranslationMap.from_dict(self.to_dict())

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {locale: entry.to_dict() for locale, entry in self._entries.items()}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TranslationMap":
        return cls({locale: TranslationEntry.from_dict(value) for locale, value in (data or {}).items()})


class TranslationMapType(TypeDecorator):
    """Stores a TranslationMap as a JSON document (JSONB on PostgreSQL)."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return {}
        if isinstance(value, TranslationMap):
            return value.to_dict()
        return TranslationMap.from_dict(value).to_dict()

    def process_result_value(self, value, dialect):
        return TranslationMap.from_dict(value)
