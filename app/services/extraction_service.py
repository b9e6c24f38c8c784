"""
Phrase Extraction Service - ingests scraped strings and deduplicates them
"""
import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.config.settings import get_settings
from app.core.exceptions import ConflictError, ValidationError
from app.core.hashing import compute_content_hash, compute_source_hash, generate_phrase_key
from app.models.occurrence import PhraseLocation, PhraseOccurrences
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationMap, utcnow
from app.schemas.extraction import (
    DuplicateCluster,
    ExtractedPhraseIn,
    ExtractionError,
    ExtractionItemResult,
    ExtractionResult,
    ExtractPhrasesRequest,
)
from app.services.project_lookup import ProjectLookupService

logger = logging.getLogger(__name__)


class PhraseExtractionService:
    """
    Turns extraction requests into phrases.

    Each submitted string is hashed; a hash already stored for the project
    bumps the existing phrase's occurrence count instead of inserting.
    """

    def __init__(self, db: AsyncSession, key_max_length: Optional[int] = None, max_batch_size: Optional[int] = None):
        self.db = db
        extraction_settings = get_settings().extraction
        self.key_max_length = key_max_length or extraction_settings.key_max_length
        self.max_batch_size = max_batch_size or extraction_settings.max_batch_size

    async def batch_extract(self, request: ExtractPhrasesRequest) -> ExtractionResult:
        """
        Extract a batch of phrases for a project

        Items are processed in order and committed one by one; a failing
        item is recorded in the result and does not stop the batch.

        Args:
            request: Extraction request naming the project by key

        Returns:
            Per-item results, counters and in-batch duplicate clusters

        Raises:
            NotFoundError: Unknown project key (before any item is processed)
            ValidationError: Batch larger than the configured maximum
        """
        if len(request.phrases) > self.max_batch_size:
            raise ValidationError(
                f"Batch exceeds the maximum of {self.max_batch_size} phrases",
                details={"submitted": len(request.phrases), "max_batch_size": self.max_batch_size},
            )

        project = await ProjectLookupService(self.db).get_by_key(request.project_key)
        project_id = project.id

        result = ExtractionResult(success=True)
        hashes: List[str] = []
        phrase_ids: Dict[str, int] = {}

        for index, item in enumerate(request.phrases):
            source_hash = compute_source_hash(item.source_text)
            hashes.append(source_hash)
            result.processed += 1
            try:
                item_result = await self._extract_one(project_id, request, item, index, source_hash)
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"Failed to extract phrase at index {index}: {e}",
                    exc_info=True,
                    extra={"project_id": project_id, "index": index},
                )
                result.failed += 1
                result.errors.append(
                    ExtractionError(index=index, source_text=item.source_text, message=str(e))
                )
                continue

            phrase_ids.setdefault(source_hash, item_result.id)
            if item_result.created:
                result.created += 1
            else:
                result.updated += 1
            result.results.append(item_result)

        result.duplicates = self._find_duplicates(hashes, phrase_ids)
        result.success = result.failed == 0

        logger.info(
            f"Extraction finished for project {project_id}",
            extra={
                "project_id": project_id,
                "processed": result.processed,
                "created": result.created,
                "updated": result.updated,
                "failed": result.failed,
                "duplicate_clusters": len(result.duplicates),
            },
        )
        return result

    async def _find_by_hash(self, project_id: int, source_hash: str) -> Optional[Phrase]:
        stmt = select(Phrase).where(
            Phrase.project_id == project_id,
            Phrase.source_hash == source_hash,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _extract_one(
        self,
        project_id: int,
        request: ExtractPhrasesRequest,
        item: ExtractedPhraseIn,
        index: int,
        source_hash: str,
    ) -> ExtractionItemResult:
        hash_verified = None
        if item.hash is not None and request.hash_options and request.hash_options.verify_hashes:
            hash_verified = item.hash == source_hash

        phrase = await self._find_by_hash(project_id, source_hash)
        if phrase is None:
            phrase = self._build_phrase(project_id, request, item, source_hash)
            self.db.add(phrase)
            try:
                await self.db.commit()
            except IntegrityError:
                # Another writer inserted the same hash first
                await self.db.rollback()
                logger.info(
                    "Phrase inserted concurrently, merging into existing row",
                    extra={"project_id": project_id, "source_hash": source_hash},
                )
                phrase = await self._find_by_hash(project_id, source_hash)
                if phrase is None:
                    raise ConflictError(
                        "Phrase insert conflicted and no existing row was found",
                        details={"project_id": project_id, "source_hash": source_hash},
                    )
            else:
                return ExtractionItemResult(
                    index=index,
                    created=True,
                    id=phrase.id,
                    hash=source_hash,
                    text_changed=False,
                    hash_verified=hash_verified,
                )

        text_changed = await self._record_hit(phrase, request, item, source_hash)
        return ExtractionItemResult(
            index=index,
            created=False,
            id=phrase.id,
            hash=source_hash,
            text_changed=text_changed,
            hash_verified=hash_verified,
        )

    def _build_phrase(
        self,
        project_id: int,
        request: ExtractPhrasesRequest,
        item: ExtractedPhraseIn,
        source_hash: str,
    ) -> Phrase:
        now = utcnow()
        occurrences = PhraseOccurrences(count=0, first_seen=now, last_seen=now)
        occurrences.record(item.count or 1, self._locations(item), seen_at=now)
        return Phrase(
            project_id=project_id,
            key=generate_phrase_key(item.source_text, self.key_max_length),
            source_text=item.source_text,
            context=item.context,
            source_hash=source_hash,
            content_hash=compute_content_hash(item.source_text, item.context),
            status=PhraseStatus.PENDING,
            is_archived=False,
            tags=[],
            translations=TranslationMap(),
            occurrences=occurrences,
            source_url=request.source_url,
            source_type=request.source_type,
            phrase_metadata=request.metadata,
            last_seen_at=now,
        )

    async def _record_hit(
        self,
        phrase: Phrase,
        request: ExtractPhrasesRequest,
        item: ExtractedPhraseIn,
        source_hash: str,
    ) -> bool:
        now = utcnow()
        track_changes = request.hash_options.track_changes if request.hash_options else True
        # stored text is never overwritten, only flagged
        text_changed = track_changes and compute_source_hash(phrase.source_text) != source_hash

        occurrences = phrase.occurrences or PhraseOccurrences(count=0, first_seen=now, last_seen=now)
        occurrences.record(item.count or 1, self._locations(item), seen_at=now)
        phrase.occurrences = occurrences
        flag_modified(phrase, "occurrences")

        phrase.last_seen_at = now
        if not phrase.source_url:
            phrase.source_url = request.source_url
        if not phrase.source_type and request.source_type:
            phrase.source_type = request.source_type

        await self.db.commit()
        return text_changed

    @staticmethod
    def _locations(item: ExtractedPhraseIn) -> List[PhraseLocation]:
        return [
            PhraseLocation(url=loc.url, path=loc.path, context=loc.context, element=loc.element)
            for loc in item.locations
        ]

    @staticmethod
    def _find_duplicates(hashes: List[str], phrase_ids: Dict[str, int]) -> List[DuplicateCluster]:
        positions: "OrderedDict[str, List[int]]" = OrderedDict()
        for index, source_hash in enumerate(hashes):
            positions.setdefault(source_hash, []).append(index)
        return [
            DuplicateCluster(hash=source_hash, indexes=indexes, phrase_id=phrase_ids.get(source_hash))
            for source_hash, indexes in positions.items()
            if len(indexes) > 1
        ]
