"""
Phrase Service - phrase CRUD and the per-locale translation review flow
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.exceptions import ErrorCode, NotFoundError, ValidationError
from app.core.hashing import compute_content_hash, compute_source_hash, generate_phrase_key
from app.core.validation import validate_locale_code
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationMap, TranslationStatus, utcnow
from app.schemas.phrase import PhraseCreate, PhraseUpdate
from app.services.project_lookup import ProjectLookupService

logger = logging.getLogger(__name__)


class PhraseService:
    """Manages single phrases and their translations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_phrase(self, phrase_id: int) -> Phrase:
        """
        Get a phrase by ID

        Raises:
            NotFoundError: If the phrase does not exist
        """
        phrase = await self.db.get(Phrase, phrase_id, populate_existing=True)
        if phrase is None:
            raise NotFoundError("phrase", phrase_id)
        return phrase

    async def create_phrase(self, data: PhraseCreate) -> Phrase:
        """
        Create a phrase explicitly (outside extraction)

        Args:
            data: Phrase creation data; key is generated when omitted

        Returns:
            Created phrase

        Raises:
            NotFoundError: Unknown project
            ValidationError: Key or source text already used in the project,
                or an invalid locale in the initial translations
        """
        project = await ProjectLookupService(self.db).get_by_id(data.project_id)
        project_id = project.id

        key = data.key or generate_phrase_key(data.source_text)
        source_hash = compute_source_hash(data.source_text)
        await self._ensure_unique(project_id, key=key, source_hash=source_hash)

        translations = TranslationMap()
        for locale, initial in data.translations.items():
            translations.upsert(
                validate_locale_code(locale),
                initial.text,
                status=initial.status,
                is_human=initial.is_human,
            )

        now = utcnow()
        phrase = Phrase(
            project_id=project_id,
            key=key,
            source_text=data.source_text,
            context=data.context,
            source_hash=source_hash,
            content_hash=compute_content_hash(data.source_text, data.context),
            status=data.status,
            is_archived=False,
            tags=self._dedupe_tags(data.tags),
            translations=translations,
            source_url=data.source_url,
            source_type=data.source_type,
            screenshot=data.screenshot,
            phrase_metadata=data.metadata,
            last_seen_at=now,
        )
        self.db.add(phrase)
        await self._commit_unique(project_id, source_hash)
        await self.db.refresh(phrase)

        logger.info("Phrase created", extra={"project_id": project_id, "phrase_id": phrase.id, "key": key})
        return phrase

    async def update_phrase(self, phrase_id: int, data: PhraseUpdate) -> Phrase:
        """
        Update phrase fields

        Hashes are recomputed when source text or context change.

        Raises:
            NotFoundError: Unknown phrase
            ValidationError: New key or source text collides within the project
        """
        phrase = await self.get_phrase(phrase_id)
        project_id = phrase.project_id
        changes = data.model_dump(exclude_unset=True)

        new_key = changes.get("key")
        new_source = changes.get("source_text")
        new_hash = compute_source_hash(new_source) if new_source is not None else None

        await self._ensure_unique(
            project_id,
            key=new_key if new_key and new_key != phrase.key else None,
            source_hash=new_hash if new_hash and new_hash != phrase.source_hash else None,
            exclude_id=phrase.id,
        )

        if new_source is not None:
            phrase.source_text = new_source
            phrase.source_hash = new_hash
        if "context" in changes:
            phrase.context = changes["context"]
        if new_source is not None or "context" in changes:
            phrase.content_hash = compute_content_hash(phrase.source_text, phrase.context)
        if new_key:
            phrase.key = new_key
        if "tags" in changes and changes["tags"] is not None:
            phrase.tags = self._dedupe_tags(changes["tags"])
        if "metadata" in changes:
            phrase.phrase_metadata = changes["metadata"]
        for field_name in ("source_url", "source_type", "screenshot"):
            if field_name in changes:
                setattr(phrase, field_name, changes[field_name])
        if changes.get("is_archived") is not None:
            phrase.is_archived = changes["is_archived"]

        await self._commit_unique(project_id, phrase.source_hash)
        await self.db.refresh(phrase)
        return phrase

    async def delete_phrase(self, phrase_id: int) -> None:
        """Hard-delete a phrase"""
        phrase = await self.get_phrase(phrase_id)
        await self.db.delete(phrase)
        await self.db.commit()
        logger.info("Phrase deleted", extra={"phrase_id": phrase_id})

    async def update_status(self, phrase_id: int, status: PhraseStatus) -> Phrase:
        """Set the lifecycle status directly"""
        phrase = await self.get_phrase(phrase_id)
        phrase.status = PhraseStatus(status)
        await self.db.commit()
        await self.db.refresh(phrase)
        return phrase

    async def add_or_update_translation(
        self,
        phrase_id: int,
        locale: str,
        text: str,
        status: TranslationStatus = TranslationStatus.PENDING,
        is_human: bool = True,
        modified_by: Optional[str] = None,
    ) -> Phrase:
        """
        Insert or overwrite the translation for one locale

        Args:
            phrase_id: Phrase ID
            locale: Locale code, e.g. "fr" or "pt-BR"
            text: Translated text
            status: Review status for the entry
            is_human: False for machine translations
            modified_by: Editor identifier

        Returns:
            Updated phrase
        """
        locale = validate_locale_code(locale)
        phrase = await self.get_phrase(phrase_id)

        phrase.translations.upsert(
            locale,
            text,
            status=TranslationStatus(status),
            is_human=is_human,
            modified_by=modified_by,
        )
        flag_modified(phrase, "translations")
        await self.db.commit()
        await self.db.refresh(phrase)

        logger.debug(
            "Translation saved",
            extra={"phrase_id": phrase_id, "locale": locale, "status": TranslationStatus(status).value},
        )
        return phrase

    async def update_translation_status(
        self,
        phrase_id: int,
        locale: str,
        status: TranslationStatus,
        review_comments: Optional[str] = None,
        reviewed_by: Optional[str] = None,
    ) -> Phrase:
        """
        Move one locale's translation to a new review status

        Raises:
            NotFoundError: No translation exists for the locale
        """
        phrase = await self.get_phrase(phrase_id)
        entry = phrase.translations.get(locale)
        if entry is None:
            raise NotFoundError("translation", f"{phrase_id}/{locale}")

        now = utcnow()
        entry.status = TranslationStatus(status)
        entry.reviewed_at = now
        entry.last_modified = now
        if reviewed_by is not None:
            entry.reviewed_by = reviewed_by
        if review_comments is not None:
            entry.review_comments = review_comments
        flag_modified(phrase, "translations")

        await self.db.commit()
        await self.db.refresh(phrase)
        return phrase

    async def remove_translation(self, phrase_id: int, locale: str) -> Phrase:
        """
        Remove one locale's translation

        Raises:
            NotFoundError: No translation exists for the locale
        """
        phrase = await self.get_phrase(phrase_id)
        if locale not in phrase.translations:
            raise NotFoundError("translation", f"{phrase_id}/{locale}")

        del phrase.translations[locale]
        flag_modified(phrase, "translations")
        await self.db.commit()
        await self.db.refresh(phrase)
        return phrase

    async def publish_phrase(self, phrase_id: int) -> Phrase:
        """
        Mark a phrase as published

        Raises:
            ValidationError: The phrase has no translations; status is unchanged
        """
        phrase = await self.get_phrase(phrase_id)
        if not phrase.translations:
            raise ValidationError(
                "Cannot publish a phrase without translations",
                details={"phrase_id": phrase_id},
            )
        phrase.status = PhraseStatus.PUBLISHED
        await self.db.commit()
        await self.db.refresh(phrase)
        return phrase

    async def _ensure_unique(
        self,
        project_id: int,
        key: Optional[str] = None,
        source_hash: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> None:
        if key is not None:
            stmt = select(Phrase.id).where(Phrase.project_id == project_id, Phrase.key == key)
            if exclude_id is not None:
                stmt = stmt.where(Phrase.id != exclude_id)
            if (await self.db.execute(stmt.limit(1))).first() is not None:
                raise ValidationError(
                    f"Phrase key already exists in project: {key}",
                    details={"project_id": project_id, "key": key},
                    error_code=ErrorCode.DUPLICATE_PHRASE,
                )
        if source_hash is not None:
            stmt = select(Phrase.id).where(Phrase.project_id == project_id, Phrase.source_hash == source_hash)
            if exclude_id is not None:
                stmt = stmt.where(Phrase.id != exclude_id)
            existing = (await self.db.execute(stmt.limit(1))).first()
            if existing is not None:
                raise ValidationError(
                    "Phrase with the same source text already exists in project",
                    details={"project_id": project_id, "existing_id": existing[0]},
                    error_code=ErrorCode.DUPLICATE_PHRASE,
                )

    async def _commit_unique(self, project_id: int, source_hash: str) -> None:
        """Commit, turning a lost uniqueness race into a ValidationError."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ValidationError(
                "Phrase with the same source text already exists in project",
                details={"project_id": project_id, "source_hash": source_hash},
                error_code=ErrorCode.DUPLICATE_PHRASE,
            )

    @staticmethod
    def _dedupe_tags(tags) -> list:
        result = []
        for tag in tags or []:
            tag = tag.strip()
            if tag and tag not in result:
                result.append(tag)
        return result

