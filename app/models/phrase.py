"""
Phrase model: one source string of a project and its translations
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON,
    Enum as SQLEnum, UniqueConstraint, Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from app.core.db import Base
from app.models.translation import TranslationMap, TranslationMapType
from app.models.occurrence import OccurrencesType


class PhraseStatus(str, enum.Enum):
    """Phrase lifecycle status (independent of per-locale review state)"""
    PUBLISHED = "published"
    PENDING = "pending"
    NEEDS_REVIEW = "needs_review"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class Phrase(Base):
    """
    Phrase: a deduplicated source string.

    translations and occurrences are JSON documents on the row; mutate them
    in place and call flag_modified, or assign a new value.
    """
    __tablename__ = "phrases"
    __table_args__ = (
        UniqueConstraint("project_id", "source_hash", name="uq_phrases_project_source_hash"),
        Index("ix_phrases_project_key", "project_id", "key"),
    )
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    key = Column(String(255), nullable=False)
    source_text = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    source_hash = Column(String(64), nullable=False)
    content_hash = Column(String(64), nullable=True)
    status = Column(
        SQLEnum(PhraseStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=32),
        default=PhraseStatus.PENDING,
        nullable=False,
        index=True,
    )
    is_archived = Column(Boolean, nullable=False, default=False, index=True)
    tags = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    translations = Column(TranslationMapType, nullable=False, default=lambda: TranslationMap())
    occurrences = Column(OccurrencesType, nullable=True)
    source_url = Column(Text, nullable=True)
    source_type = Column(String(64), nullable=True)
    screenshot = Column(Text, nullable=True)
    phrase_metadata = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    last_seen_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    project = relationship("Project", back_populates="phrases")

    def __repr__(self) -> str:
        return f"<Phrase id={self.id} key={self.key!r} project_id={self.project_id}>"
