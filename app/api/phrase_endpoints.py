"""
Phrase API endpoints - extraction, review workflow, queries, batch and file transfer
"""
from pathlib import Path
from typing import List, Optional
import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import Response

from app.config.settings import get_settings
from app.core.dependencies import (
    get_batch_service,
    get_extraction_service,
    get_phrase_service,
    get_query_service,
    get_transfer_service,
)
from app.core.exceptions import ValidationError
from app.models.phrase import PhraseStatus
from app.schemas.base import Envelope, Message, Page
from app.schemas.batch import BatchOperationRequest, BatchOperationResult
from app.schemas.extraction import ExtractionResult, ExtractPhrasesRequest
from app.schemas.phrase import (
    PhraseCreate,
    PhraseRead,
    PhraseStats,
    PhraseStatusUpdate,
    PhraseUpdate,
    TranslationStatusUpdate,
    TranslationUpsert,
)
from app.schemas.transfer import ExportFormat, ImportResult
from app.services.extraction_service import PhraseExtractionService
from app.services.phrase_batch_service import PhraseBatchService
from app.services.phrase_query_service import PhraseQueryService
from app.services.phrase_service import PhraseService
from app.services.phrase_status import OverallStatusFilter
from app.services.phrase_transfer_service import PhraseTransferService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/phrases", tags=["phrases"])


def _page(page: Page) -> Page[PhraseRead]:
    return Page[PhraseRead](
        items=[PhraseRead.from_phrase(p) for p in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
    )


@router.post("", response_model=Envelope[PhraseRead], status_code=status.HTTP_201_CREATED)
async def create_phrase(
    data: PhraseCreate,
    service: PhraseService = Depends(get_phrase_service),
):
    """
    Create a phrase

    - **project_id**: Owning project
    - **source_text**: Source string; must be unique in the project
    - **key**: Optional key; generated from the source text when omitted
    - **translations**: Optional initial translations by locale
    """
    phrase = await service.create_phrase(data)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.get("", response_model=Envelope[Page[PhraseRead]])
async def list_phrases(
    project_id: Optional[int] = Query(None),
    status_filter: Optional[PhraseStatus] = Query(None, alias="status"),
    is_archived: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    tags: Optional[List[str]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000),
    service: PhraseQueryService = Depends(get_query_service),
):
    """List phrases with optional filters"""
    result = await service.list_phrases(
        project_id=project_id,
        status=status_filter,
        is_archived=is_archived,
        search=search,
        tags=tags,
        page=page,
        limit=limit,
    )
    return Envelope(status="ok", data=_page(result))


@router.get("/by-status", response_model=Envelope[Page[PhraseRead]])
async def get_phrases_by_status(
    project_id: int = Query(...),
    status_filter: OverallStatusFilter = Query(..., alias="status"),
    locale: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000),
    service: PhraseQueryService = Depends(get_query_service),
):
    """
    Phrases by derived translation status

    - **status**: untranslated, ready, needs_attention, pending, approved, rejected, needs_review
    - **locale**: Match on this locale only instead of all translations
    """
    result = await service.get_phrases_by_overall_status(
        project_id, status_filter, page=page, limit=limit, locale=locale
    )
    return Envelope(status="ok", data=_page(result))


@router.get("/stats", response_model=Envelope[PhraseStats])
async def get_phrase_stats(
    project_id: int = Query(...),
    service: PhraseQueryService = Depends(get_query_service),
):
    """Counts by category, lifecycle status and locale for a project"""
    stats = await service.get_project_phrase_stats(project_id)
    return Envelope(status="ok", data=PhraseStats(**stats))


@router.get("/export")
async def export_phrases(
    project_id: int = Query(...),
    export_format: str = Query(ExportFormat.JSON.value, alias="format"),
    locales: Optional[List[str]] = Query(None),
    statuses: Optional[List[str]] = Query(None),
    service: PhraseTransferService = Depends(get_transfer_service),
):
    """Download a project's phrases as json, csv or xlsx"""
    result = await service.export_phrases(project_id, export_format, locales=locales, statuses=statuses)
    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.post("/import", response_model=Envelope[ImportResult])
async def import_phrases(
    project_id: int = Form(...),
    overwrite: bool = Form(False),
    file: UploadFile = File(...),
    service: PhraseTransferService = Depends(get_transfer_service),
):
    """
    Import phrases from an uploaded json, csv or xlsx file

    - **overwrite**: Update phrases whose key already exists instead of skipping them
    """
    settings = get_settings()
    content = await file.read()
    max_bytes = settings.transfer.max_upload_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(
            f"Upload exceeds {settings.transfer.max_upload_mb} MB",
            details={"size": len(content), "max_bytes": max_bytes},
        )

    upload_dir = settings.get_upload_path()
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename or "").suffix.lower()
    target = upload_dir / f"{uuid.uuid4().hex}{suffix}"
    target.write_bytes(content)
    logger.info("Import file received", extra={"project_id": project_id, "upload_name": file.filename, "size": len(content)})

    result = await service.import_phrases(project_id, str(target), overwrite=overwrite)
    return Envelope(status="ok", data=result)


@router.post("/batch", response_model=Envelope[BatchOperationResult])
async def batch_operation(
    request: BatchOperationRequest,
    service: PhraseBatchService = Depends(get_batch_service),
):
    """
    Apply one operation to many phrases

    - **operation**: approve_translations, reject_translations, archive, delete, tag, untag
    - **tag**: Required for tag/untag
    - **locale**: Required for approve_translations/reject_translations
    """
    result = await service.process_batch(
        request.operation,
        request.phrase_ids,
        tag=request.tag,
        locale=request.locale,
        reviewed_by=request.reviewed_by,
    )
    return Envelope(status="ok", data=result)


@router.post("/batch-extract", response_model=Envelope[ExtractionResult])
async def batch_extract(
    request: ExtractPhrasesRequest,
    service: PhraseExtractionService = Depends(get_extraction_service),
):
    """
    Ingest scraped strings for a project

    Repeated strings are merged into the existing phrase and their
    occurrence count is increased.
    """
    result = await service.batch_extract(request)
    return Envelope(status="ok", data=result)


@router.get("/{phrase_id}", response_model=Envelope[PhraseRead])
async def get_phrase(
    phrase_id: int,
    service: PhraseService = Depends(get_phrase_service),
):
    phrase = await service.get_phrase(phrase_id)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.patch("/{phrase_id}", response_model=Envelope[PhraseRead])
async def update_phrase(
    phrase_id: int,
    data: PhraseUpdate,
    service: PhraseService = Depends(get_phrase_service),
):
    """Update phrase fields; hashes follow source text and context changes"""
    phrase = await service.update_phrase(phrase_id, data)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.delete("/{phrase_id}", response_model=Envelope[Message])
async def delete_phrase(
    phrase_id: int,
    service: PhraseService = Depends(get_phrase_service),
):
    await service.delete_phrase(phrase_id)
    return Envelope(status="ok", data=Message(message="Phrase deleted"))


@router.patch("/{phrase_id}/status", response_model=Envelope[PhraseRead])
async def update_phrase_status(
    phrase_id: int,
    data: PhraseStatusUpdate,
    service: PhraseService = Depends(get_phrase_service),
):
    phrase = await service.update_status(phrase_id, data.status)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.post("/{phrase_id}/publish", response_model=Envelope[PhraseRead])
async def publish_phrase(
    phrase_id: int,
    service: PhraseService = Depends(get_phrase_service),
):
    """Publish a phrase; it must have at least one translation"""
    phrase = await service.publish_phrase(phrase_id)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.put("/{phrase_id}/translations/{locale}", response_model=Envelope[PhraseRead])
async def upsert_translation(
    phrase_id: int,
    locale: str,
    data: TranslationUpsert,
    service: PhraseService = Depends(get_phrase_service),
):
    """Add or replace the translation for a locale"""
    phrase = await service.add_or_update_translation(
        phrase_id,
        locale,
        data.text,
        status=data.status,
        is_human=data.is_human,
        modified_by=data.modified_by,
    )
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.delete("/{phrase_id}/translations/{locale}", response_model=Envelope[PhraseRead])
async def remove_translation(
    phrase_id: int,
    locale: str,
    service: PhraseService = Depends(get_phrase_service),
):
    phrase = await service.remove_translation(phrase_id, locale)
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))


@router.patch("/{phrase_id}/translations/{locale}/status", response_model=Envelope[PhraseRead])
async def update_translation_status(
    phrase_id: int,
    locale: str,
    data: TranslationStatusUpdate,
    service: PhraseService = Depends(get_phrase_service),
):
    """Review a translation: approve, reject or flag it"""
    phrase = await service.update_translation_status(
        phrase_id,
        locale,
        data.status,
        review_comments=data.review_comments,
        reviewed_by=data.reviewed_by,
    )
    return Envelope(status="ok", data=PhraseRead.from_phrase(phrase))
