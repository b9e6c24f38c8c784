from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationEntry, TranslationStatus
from app.services.phrase_status import summarize_translations


class TranslationEntryRead(BaseModel):
    text: str
    status: TranslationStatus
    is_human: bool
    last_modified: datetime
    modified_by: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: TranslationEntry) -> "TranslationEntryRead":
        return cls(**entry.to_dict())


class PhraseLocationIn(BaseModel):
    url: str
    path: Optional[str] = None
    context: Optional[str] = None
    element: Optional[str] = None


class OccurrencesRead(BaseModel):
    count: int
    first_seen: datetime
    last_seen: datetime
    locations: List[Dict[str, Any]] = Field(default_factory=list)


class PhraseRead(BaseModel):
    id: int
    project_id: int
    key: str
    source_text: str
    context: Optional[str] = None
    source_hash: str
    content_hash: Optional[str] = None
    status: PhraseStatus
    is_archived: bool
    tags: List[str] = Field(default_factory=list)
    translations: Dict[str, TranslationEntryRead] = Field(default_factory=dict)
    occurrences: Optional[OccurrencesRead] = None
    source_url: Optional[str] = None
    source_type: Optional[str] = None
    screenshot: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    last_seen_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    summary: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_phrase(cls, phrase: Phrase) -> "PhraseRead":
        translations = phrase.translations
        return cls(
            id=phrase.id,
            project_id=phrase.project_id,
            key=phrase.key,
            source_text=phrase.source_text,
            context=phrase.context,
            source_hash=phrase.source_hash,
            content_hash=phrase.content_hash,
            status=phrase.status,
            is_archived=bool(phrase.is_archived),
            tags=list(phrase.tags or []),
            translations={
                locale: TranslationEntryRead.from_entry(entry)
                for locale, entry in translations.items()
            },
            occurrences=OccurrencesRead(**phrase.occurrences.to_dict()) if phrase.occurrences else None,
            source_url=phrase.source_url,
            source_type=phrase.source_type,
            screenshot=phrase.screenshot,
            metadata=phrase.phrase_metadata,
            last_seen_at=phrase.last_seen_at,
            created_at=phrase.created_at,
            updated_at=phrase.updated_at,
            summary=summarize_translations(translations),
        )


class InitialTranslation(BaseModel):
    text: str
    status: TranslationStatus = TranslationStatus.PENDING
    is_human: bool = True


class PhraseCreate(BaseModel):
    project_id: int
    source_text: str = Field(..., min_length=1)
    key: Optional[str] = Field(default=None, max_length=255)
    context: Optional[str] = None
    status: PhraseStatus = PhraseStatus.PENDING
    tags: List[str] = Field(default_factory=list)
    translations: Dict[str, InitialTranslation] = Field(default_factory=dict)
    source_url: Optional[str] = None
    source_type: Optional[str] = None
    screenshot: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator('source_text')
    @classmethod
    def source_text_not_blank(cls, v):
        if not v.strip():
            raise ValueError("source_text must not be blank")
        return v


class PhraseUpdate(BaseModel):
    source_text: Optional[str] = Field(default=None, min_length=1)
    key: Optional[str] = Field(default=None, min_length=1, max_length=255)
    context: Optional[str] = None
    tags: Optional[List[str]] = None
    source_url: Optional[str] = None
    source_type: Optional[str] = None
    screenshot: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    is_archived: Optional[bool] = None


class PhraseStatusUpdate(BaseModel):
    status: PhraseStatus


class TranslationUpsert(BaseModel):
    text: str
    status: TranslationStatus = TranslationStatus.PENDING
    is_human: bool = True
    modified_by: Optional[str] = None


class TranslationStatusUpdate(BaseModel):
    status: TranslationStatus
    review_comments: Optional[str] = None
    reviewed_by: Optional[str] = None


class PhraseStats(BaseModel):
    total_phrases: int
    archived: int
    untranslated: int
    ready: int
    needs_attention: int
    pending: int
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_locale: Dict[str, Dict[str, int]] = Field(default_factory=dict)
