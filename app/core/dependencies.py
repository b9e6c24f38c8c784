"""
Dependency providers for FastAPI routes.
"""

from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.services.extraction_service import PhraseExtractionService
from app.services.machine_translation_service import MachineTranslationService
from app.services.phrase_batch_service import PhraseBatchService
from app.services.phrase_query_service import PhraseQueryService
from app.services.phrase_service import PhraseService
from app.services.phrase_transfer_service import PhraseTransferService
from app.services.translation_providers import (
    TranslationProviderRegistry,
    create_translation_provider_registry,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_provider_registry() -> TranslationProviderRegistry:
    """Provider registry built once per process from settings."""
    return create_translation_provider_registry()


def get_phrase_service(db: AsyncSession = Depends(get_db)) -> PhraseService:
    return PhraseService(db)


def get_extraction_service(db: AsyncSession = Depends(get_db)) -> PhraseExtractionService:
    return PhraseExtractionService(db)


def get_batch_service(db: AsyncSession = Depends(get_db)) -> PhraseBatchService:
    return PhraseBatchService(db)


def get_query_service(db: AsyncSession = Depends(get_db)) -> PhraseQueryService:
    return PhraseQueryService(db)


def get_transfer_service(db: AsyncSession = Depends(get_db)) -> PhraseTransferService:
    return PhraseTransferService(db)


def get_machine_translation_service(
    provider: Optional[str] = Query(None, description="Provider name; the configured default when omitted"),
    db: AsyncSession = Depends(get_db),
    registry: TranslationProviderRegistry = Depends(get_provider_registry),
) -> MachineTranslationService:
    return MachineTranslationService(db, registry.get(provider))
