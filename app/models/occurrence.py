"""
Occurrence tracking for extracted phrases.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator

from app.models.translation import utcnow, _from_iso, _to_iso


@dataclass
class PhraseLocation:
    """Where a phrase was seen; appended on every extraction hit."""
    url: str
    path: Optional[str] = None
    context: Optional[str] = None
    element: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "path": self.path,
            "context": self.context,
            "element": self.element,
            "timestamp": _to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhraseLocation":
        return cls(
            url=data.get("url", ""),
            path=data.get("path"),
            context=data.get("context"),
            element=data.get("element"),
            timestamp=_from_iso(data.get("timestamp")) or utcnow(),
        )


@dataclass
class PhraseOccurrences:
    count: int = 0
    first_seen: datetime = field(default_factory=utcnow)
    last_seen: datetime = field(default_factory=utcnow)
    locations: List[PhraseLocation] = field(default_factory=list)

    def record(self, count: int, locations: List[PhraseLocation], seen_at: Optional[datetime] = None) -> None:
        """Add a sighting. Count never decreases."""
        seen_at = seen_at or utcnow()
        self.count += max(count, 0)
        if seen_at > self.last_seen:
            self.last_seen = seen_at
        for location in locations:
            location.timestamp = seen_at
            self.locations.append(location)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "first_seen": _to_iso(self.first_seen),
            "last_seen": _to_iso(self.last_seen),
            "locations": [location.to_dict() for location in self.locations],
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PhraseOccurrences":
        data = data or {}
        first_seen = _from_iso(data.get("first_seen")) or utcnow()
        return cls(
            count=int(data.get("count", 0)),
            first_seen=first_seen,
            last_seen=_from_iso(data.get("last_seen")) or first_seen,
            locations=[PhraseLocation.from_dict(item) for item in data.get("locations", [])],
        )


class OccurrencesType(TypeDecorator):
    """Stores PhraseOccurrences as a JSON document."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, PhraseOccurrences):
            return value.to_dict()
        return PhraseOccurrences.from_dict(value).to_dict()

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return PhraseOccurrences.from_dict(value)
