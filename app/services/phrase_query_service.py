"""
Phrase Query Service - listing, status filtering and project statistics
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.core.validation import validate_locale_code, validate_pagination
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationStatus
from app.schemas.base import Page
from app.services.phrase_status import (
    CompletionCategory,
    OverallStatusFilter,
    derive_categories,
    matches_status,
)
from app.services.project_lookup import ProjectLookupService

logger = logging.getLogger(__name__)


class PhraseQueryService:
    """Read-side queries over a project's phrases"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_phrases(
        self,
        project_id: Optional[int] = None,
        status: Optional[PhraseStatus] = None,
        is_archived: Optional[bool] = None,
        search: Optional[str] = None,
        tags: Optional[List[str]] = None,
        page: int = 1,
        limit: int = 100,
    ) -> Page[Phrase]:
        """
        List phrases with optional filters

        Args:
            project_id: Restrict to one project
            status: Lifecycle status
            is_archived: Archived flag
            search: Case-insensitive substring of key or source text
            tags: Every tag listed must be present on the phrase
            page: 1-based page number
            limit: Page size

        Returns:
            Page of phrases ordered by ID
        """
        validate_pagination(page, limit)

        stmt = select(Phrase)
        if project_id is not None:
            stmt = stmt.where(Phrase.project_id == project_id)
        if status is not None:
            stmt = stmt.where(Phrase.status == PhraseStatus(status))
        if is_archived is not None:
            stmt = stmt.where(Phrase.is_archived == is_archived)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(or_(
                func.lower(Phrase.key).like(pattern),
                func.lower(Phrase.source_text).like(pattern),
            ))
        stmt = stmt.order_by(Phrase.id)

        wanted_tags = [t for t in (tags or []) if t]
        if not wanted_tags:
            total = (await self.db.execute(
                select(func.count()).select_from(stmt.order_by(None).subquery())
            )).scalar_one()
            result = await self.db.execute(
                stmt.offset((page - 1) * limit).limit(limit).execution_options(populate_existing=True)
            )
            return Page[Phrase](items=list(result.scalars().all()), total=total, page=page, limit=limit)

        # tag containment differs per JSON dialect; filter in Python
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        matching = [
            phrase for phrase in result.scalars().all()
            if all(tag in (phrase.tags or []) for tag in wanted_tags)
        ]
        return self._paginate(matching, page, limit)

    async def get_phrases_by_overall_status(
        self,
        project_id: int,
        status: OverallStatusFilter,
        page: int = 1,
        limit: int = 100,
        locale: Optional[str] = None,
    ) -> Page[Phrase]:
        """
        Non-archived phrases whose translations match an overall status

        With a locale the match is on that locale's entry only; without one
        it is aggregated over all entries (ready needs every entry approved).

        Raises:
            NotFoundError: Unknown project
            ValidationError: Invalid status, locale or pagination values
        """
        validate_pagination(page, limit)
        try:
            status = OverallStatusFilter(status)
        except ValueError:
            raise ValidationError(
                f"Invalid status filter: {status}",
                details={"field": "status", "allowed": [s.value for s in OverallStatusFilter]},
            )
        if locale is not None:
            locale = validate_locale_code(locale)
        await ProjectLookupService(self.db).get_by_id(project_id)

        phrases = await self._active_phrases(project_id)
        matching = [p for p in phrases if matches_status(p.translations, status, locale)]

        logger.debug(
            "Overall status query",
            extra={"project_id": project_id, "status": status.value, "locale": locale, "matches": len(matching)},
        )
        return self._paginate(matching, page, limit)

    async def get_project_phrase_stats(self, project_id: int) -> Dict[str, object]:
        """
        Aggregate counts for a project

        Returns:
            Counts over non-archived phrases: total, completion categories,
            lifecycle statuses and per-locale review statuses. Archived
            phrases are only counted in "archived".
        """
        await ProjectLookupService(self.db).get_by_id(project_id)

        result = await self.db.execute(
            select(Phrase)
            .where(Phrase.project_id == project_id)
            .order_by(Phrase.id)
            .execution_options(populate_existing=True)
        )
        phrases = result.scalars().all()

        stats = {
            "total_phrases": 0,
            "archived": 0,
            "untranslated": 0,
            "ready": 0,
            "needs_attention": 0,
            "pending": 0,
            "by_status": {s.value: 0 for s in PhraseStatus},
            "by_locale": {},
        }
        by_locale: Dict[str, Dict[str, int]] = stats["by_locale"]

        for phrase in phrases:
            if phrase.is_archived:
                stats["archived"] += 1
                continue
            stats["total_phrases"] += 1
            stats["by_status"][PhraseStatus(phrase.status).value] += 1

            for category in derive_categories(phrase.translations):
                if category == CompletionCategory.UNTRANSLATED:
                    stats["untranslated"] += 1
                elif category == CompletionCategory.READY:
                    stats["ready"] += 1
                elif category == CompletionCategory.NEEDS_ATTENTION:
                    stats["needs_attention"] += 1
                elif category == CompletionCategory.PENDING:
                    stats["pending"] += 1

            for locale, entry in phrase.translations.items():
                counts = by_locale.setdefault(locale, {s.value: 0 for s in TranslationStatus})
                counts[entry.status.value] += 1

        return stats

    async def _active_phrases(self, project_id: int) -> List[Phrase]:
        stmt = (
            select(Phrase)
            .where(Phrase.project_id == project_id, Phrase.is_archived.is_(False))
            .order_by(Phrase.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    def _paginate(items: List[Phrase], page: int, limit: int) -> Page[Phrase]:
        start = (page - 1) * limit
        return Page[Phrase](items=items[start:start + limit], total=len(items), page=page, limit=limit)
