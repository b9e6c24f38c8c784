"""
Unit tests for PhraseBatchService
"""
import pytest

from app.core.exceptions import ErrorCode, ValidationError
from app.models.phrase import Phrase, PhraseStatus
from app.models.translation import TranslationStatus
from app.schemas.phrase import PhraseCreate
from app.services.phrase_batch_service import PhraseBatchService
from app.services.phrase_service import PhraseService


async def _phrases(db_session, project, *texts, **kwargs):
    service = PhraseService(db_session)
    created = []
    for text in texts:
        created.append(await service.create_phrase(
            PhraseCreate(project_id=project.id, source_text=text, **kwargs)
        ))
    return created


@pytest.mark.asyncio
async def test_unsupported_operation(db_session, project):
    with pytest.raises(ValidationError) as exc:
        await PhraseBatchService(db_session).process_batch("merge", [1])
    assert exc.value.error_code == ErrorCode.UNSUPPORTED_OPERATION


@pytest.mark.asyncio
async def test_archive_counts_missing_ids_as_skipped(db_session, project):
    first, second = await _phrases(db_session, project, "Home", "About")
    result = await PhraseBatchService(db_session).process_batch("archive", [first.id, second.id, 999])

    assert result.success is True
    assert result.count == 3
    assert result.affected == 2
    assert result.skipped == 1

    reloaded = await db_session.get(Phrase, first.id, populate_existing=True)
    assert reloaded.is_archived is True


@pytest.mark.asyncio
async def test_delete_removes_rows(db_session, project):
    first, second = await _phrases(db_session, project, "Home", "About")
    result = await PhraseBatchService(db_session).process_batch("delete", [first.id, first.id])

    assert result.count == 1
    assert result.affected == 1
    assert await db_session.get(Phrase, first.id) is None
    assert await db_session.get(Phrase, second.id) is not None


@pytest.mark.asyncio
async def test_tag_is_idempotent(db_session, project):
    first, second = await _phrases(db_session, project, "Home", "About")
    service = PhraseBatchService(db_session)

    result = await service.process_batch("tag", [first.id, second.id], tag="nav")
    assert result.affected == 2

    again = await service.process_batch("tag", [first.id, second.id], tag="nav")
    assert again.affected == 0
    assert again.skipped == 2

    reloaded = await db_session.get(Phrase, first.id, populate_existing=True)
    assert reloaded.tags == ["nav"]


@pytest.mark.asyncio
async def test_untag_without_tag_is_noop(db_session, project):
    (first,) = await _phrases(db_session, project, "Home", tags=["footer"])
    service = PhraseBatchService(db_session)

    result = await service.process_batch("untag", [first.id], tag="nav")
    assert result.affected == 0

    result = await service.process_batch("untag", [first.id], tag="footer")
    assert result.affected == 1
    reloaded = await db_session.get(Phrase, first.id, populate_existing=True)
    assert reloaded.tags == []


@pytest.mark.asyncio
async def test_tag_requires_value(db_session, project):
    (first,) = await _phrases(db_session, project, "Home")
    with pytest.raises(ValidationError):
        await PhraseBatchService(db_session).process_batch("tag", [first.id], tag=" ")


@pytest.mark.asyncio
async def test_approve_translations(db_session, project):
    first, second = await _phrases(db_session, project, "Home", "About")
    await PhraseService(db_session).add_or_update_translation(first.id, "fr", "Accueil")

    result = await PhraseBatchService(db_session).process_batch(
        "approve_translations", [first.id, second.id, 999], locale="fr", reviewed_by="lee"
    )

    assert result.affected == 1
    assert result.skipped == 1
    assert result.success is False
    assert result.errors == [{"phrase_id": 999, "message": "Phrase not found"}]

    reloaded = await db_session.get(Phrase, first.id, populate_existing=True)
    entry = reloaded.translations["fr"]
    assert entry.status == TranslationStatus.APPROVED
    assert entry.reviewed_by == "lee"
    assert entry.reviewed_at is not None


@pytest.mark.asyncio
async def test_reject_requires_locale(db_session, project):
    (first,) = await _phrases(db_session, project, "Home")
    with pytest.raises(ValidationError):
        await PhraseBatchService(db_session).process_batch("reject_translations", [first.id])


@pytest.mark.asyncio
async def test_publish_requires_translations(db_session, project):
    translated, empty = await _phrases(db_session, project, "Home", "About")
    await PhraseService(db_session).add_or_update_translation(translated.id, "fr", "Accueil")

    result = await PhraseBatchService(db_session).process_batch("publish", [translated.id, empty.id, 999])

    assert result.operation == "publish"
    assert result.count == 3
    assert result.affected == 1
    assert result.success is False
    assert [e["phrase_id"] for e in result.errors] == [empty.id, 999]

    published = await db_session.get(Phrase, translated.id, populate_existing=True)
    untouched = await db_session.get(Phrase, empty.id, populate_existing=True)
    assert published.status == PhraseStatus.PUBLISHED
    assert untouched.status == PhraseStatus.PENDING
