"""
Phrase Batch Service - bulk operations over many phrases
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.exceptions import ErrorCode, ValidationError
from app.core.validation import normalize_tag
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationStatus, utcnow
from app.schemas.batch import BatchOperation, BatchOperationResult

logger = logging.getLogger(__name__)


class PhraseBatchService:
    """Applies one operation to a list of phrase IDs"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def process_batch(
        self,
        operation: str,
        phrase_ids: List[int],
        tag: Optional[str] = None,
        locale: Optional[str] = None,
        reviewed_by: Optional[str] = None,
    ) -> BatchOperationResult:
        """
        Run a batch operation

        archive and delete are single bulk statements; tag and untag run in
        one transaction. publish and approve/reject commit each phrase
        separately and collect per-phrase errors. publish leaves phrases
        without translations unchanged and reports them as errors.

        Args:
            operation: One of BatchOperation values
            phrase_ids: Target phrase IDs
            tag: Required for tag/untag
            locale: Required for approve_translations/reject_translations
            reviewed_by: Reviewer recorded on approve/reject

        Returns:
            Batch result summary

        Raises:
            ValidationError: Unsupported operation or missing tag/locale
        """
        try:
            op = BatchOperation(operation)
        except ValueError:
            raise ValidationError(
                f"Unsupported batch operation: {operation}",
                details={"operation": operation, "supported": [o.value for o in BatchOperation]},
                error_code=ErrorCode.UNSUPPORTED_OPERATION,
            )

        ids = list(dict.fromkeys(phrase_ids))

        if op == BatchOperation.ARCHIVE:
            result = await self._archive(ids)
        elif op == BatchOperation.DELETE:
            result = await self._delete(ids)
        elif op in (BatchOperation.TAG, BatchOperation.UNTAG):
            result = await self._retag(op, ids, normalize_tag(tag))
        elif op == BatchOperation.PUBLISH:
            result = await self._publish(ids)
        else:
            if not locale or not locale.strip():
                raise ValidationError(
                    f"Locale is required for {op.value}",
                    details={"field": "locale", "operation": op.value},
                )
            status = (
                TranslationStatus.APPROVED
                if op == BatchOperation.APPROVE_TRANSLATIONS
                else TranslationStatus.REJECTED
            )
            result = await self._review(op, ids, locale.strip(), status, reviewed_by)

        logger.info(
            f"Batch operation {op.value} processed",
            extra={
                "operation": op.value,
                "count": result.count,
                "affected": result.affected,
                "skipped": result.skipped,
                "errors": len(result.errors),
            },
        )
        return result

    async def _existing_ids(self, ids: List[int]) -> List[int]:
        result = await self.db.execute(select(Phrase.id).where(Phrase.id.in_(ids)))
        return list(result.scalars().all())

    async def _archive(self, ids: List[int]) -> BatchOperationResult:
        existing = await self._existing_ids(ids)
        stmt = (
            update(Phrase)
            .where(Phrase.id.in_(ids))
            .values(is_archived=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(stmt)
        await self.db.commit()
        affected = len(existing)
        return BatchOperationResult(
            success=True,
            operation=BatchOperation.ARCHIVE.value,
            count=len(ids),
            affected=affected,
            skipped=len(ids) - affected,
        )

    async def _delete(self, ids: List[int]) -> BatchOperationResult:
        existing = await self._existing_ids(ids)
        stmt = delete(Phrase).where(Phrase.id.in_(ids)).execution_options(synchronize_session="fetch")
        await self.db.execute(stmt)
        await self.db.commit()
        affected = len(existing)
        return BatchOperationResult(
            success=True,
            operation=BatchOperation.DELETE.value,
            count=len(ids),
            affected=affected,
            skipped=len(ids) - affected,
        )

    async def _retag(self, op: BatchOperation, ids: List[int], tag: str) -> BatchOperationResult:
        result = await self.db.execute(select(Phrase).where(Phrase.id.in_(ids)))
        phrases = result.scalars().all()

        affected = 0
        for phrase in phrases:
            tags = list(phrase.tags or [])
            if op == BatchOperation.TAG and tag not in tags:
                tags.append(tag)
            elif op == BatchOperation.UNTAG and tag in tags:
                tags = [t for t in tags if t != tag]
            else:
                continue
            phrase.tags = tags
            affected += 1

        await self.db.commit()
        return BatchOperationResult(
            success=True,
            operation=op.value,
            count=len(ids),
            affected=affected,
            skipped=len(ids) - affected,
        )

    async def _review(
        self,
        op: BatchOperation,
        ids: List[int],
        locale: str,
        status: TranslationStatus,
        reviewed_by: Optional[str],
    ) -> BatchOperationResult:
        affected = 0
        skipped = 0
        errors = []

        for phrase_id in ids:
            try:
                phrase = await self.db.get(Phrase, phrase_id)
                if phrase is None:
                    errors.append({"phrase_id": phrase_id, "message": "Phrase not found"})
                    continue
                entry = phrase.translations.get(locale)
                if entry is None:
                    skipped += 1
                    continue

                now = utcnow()
                entry.status = status
                entry.reviewed_at = now
                entry.last_modified = now
                if reviewed_by is not None:
                    entry.reviewed_by = reviewed_by
                flag_modified(phrase, "translations")
                await self.db.commit()
                affected += 1
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"Batch {op.value} failed for phrase {phrase_id}: {e}",
                    extra={"phrase_id": phrase_id, "locale": locale},
                )
                errors.append({"phrase_id": phrase_id, "message": str(e)})

        return BatchOperationResult(
            success=not errors,
            operation=op.value,
            count=len(ids),
            affected=affected,
            skipped=skipped,
            errors=errors,
        )

    async def _publish(self, ids: List[int]) -> BatchOperationResult:
        affected = 0
        errors = []

        for phrase_id in ids:
            try:
                phrase = await self.db.get(Phrase, phrase_id)
                if phrase is None:
                    errors.append({"phrase_id": phrase_id, "message": "Phrase not found"})
                    continue
                if not phrase.translations:
                    errors.append({
                        "phrase_id": phrase_id,
                        "message": "Cannot publish a phrase without translations",
                    })
                    continue
                phrase.status = PhraseStatus.PUBLISHED
                await self.db.commit()
                affected += 1
            except Exception as e:
                await self.db.rollback()
                logger.error(
                    f"Batch publish failed for phrase {phrase_id}: {e}",
                    extra={"phrase_id": phrase_id},
                )
                errors.append({"phrase_id": phrase_id, "message": str(e)})

        return BatchOperationResult(
            success=not errors,
            operation=BatchOperation.PUBLISH.value,
            count=len(ids),
            affected=affected,
            errors=errors,
        )
