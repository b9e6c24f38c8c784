"""
Unit tests for PhraseService
"""
import pytest

from app.core.exceptions import ErrorCode, NotFoundError, ValidationError
from app.models.phrase import PhraseStatus
from app.models.translation import TranslationStatus
from app.schemas.phrase import PhraseCreate, PhraseUpdate
from app.services.phrase_service import PhraseService


async def _create(db_session, project, source_text="Welcome back", **kwargs):
    service = PhraseService(db_session)
    return await service.create_phrase(PhraseCreate(project_id=project.id, source_text=source_text, **kwargs))


@pytest.mark.asyncio
async def test_create_phrase_generates_key_and_hashes(db_session, project):
    phrase = await _create(db_session, project, context="Header", tags=["home", "home", " nav "])

    assert phrase.id is not None
    assert phrase.key == "welcome-back"
    assert len(phrase.source_hash) == 64
    assert phrase.content_hash is not None
    assert phrase.status == PhraseStatus.PENDING
    assert phrase.tags == ["home", "nav"]
    assert phrase.created_at is not None


@pytest.mark.asyncio
async def test_create_phrase_with_initial_translations(db_session, project):
    phrase = await _create(
        db_session,
        project,
        translations={"fr": {"text": "Bon retour", "status": "approved"}},
    )
    assert phrase.translations["fr"].text == "Bon retour"
    assert phrase.translations["fr"].status == TranslationStatus.APPROVED


@pytest.mark.asyncio
async def test_create_duplicate_source_text_rejected(db_session, project):
    await _create(db_session, project, source_text="Log out")
    with pytest.raises(ValidationError) as exc:
        await _create(db_session, project, source_text="LOG OUT ", key="logout-2")
    assert exc.value.error_code == ErrorCode.DUPLICATE_PHRASE


@pytest.mark.asyncio
async def test_create_duplicate_key_rejected(db_session, project):
    await _create(db_session, project, source_text="Log out", key="logout")
    with pytest.raises(ValidationError):
        await _create(db_session, project, source_text="Sign out", key="logout")


@pytest.mark.asyncio
async def test_create_unknown_project(db_session, project):
    service = PhraseService(db_session)
    with pytest.raises(NotFoundError):
        await service.create_phrase(PhraseCreate(project_id=9999, source_text="Hello"))


@pytest.mark.asyncio
async def test_get_missing_phrase(db_session):
    service = PhraseService(db_session)
    with pytest.raises(NotFoundError) as exc:
        await service.get_phrase(12345)
    assert exc.value.error_code == ErrorCode.PHRASE_NOT_FOUND


@pytest.mark.asyncio
async def test_update_phrase_recomputes_hash(db_session, project):
    phrase = await _create(db_session, project)
    old_hash = phrase.source_hash

    service = PhraseService(db_session)
    updated = await service.update_phrase(phrase.id, PhraseUpdate(source_text="Welcome home", tags=["x"]))

    assert updated.source_text == "Welcome home"
    assert updated.source_hash != old_hash
    assert updated.key == "welcome-back"
    assert updated.tags == ["x"]


@pytest.mark.asyncio
async def test_translation_review_flow(db_session, project):
    """pending -> needs_review -> approved, with review metadata"""
    phrase = await _create(db_session, project)
    service = PhraseService(db_session)

    phrase = await service.add_or_update_translation(phrase.id, "fr", "Bon retour", modified_by="ana")
    assert phrase.translations["fr"].status == TranslationStatus.PENDING
    assert phrase.translations["fr"].modified_by == "ana"

    phrase = await service.update_translation_status(phrase.id, "fr", TranslationStatus.NEEDS_REVIEW)
    phrase = await service.update_translation_status(
        phrase.id, "fr", TranslationStatus.APPROVED, review_comments="Looks good", reviewed_by="lee"
    )

    entry = phrase.translations["fr"]
    assert entry.status == TranslationStatus.APPROVED
    assert entry.reviewed_by == "lee"
    assert entry.review_comments == "Looks good"
    assert entry.reviewed_at is not None
    # the lifecycle status is untouched by review
    assert phrase.status == PhraseStatus.PENDING


@pytest.mark.asyncio
async def test_translation_status_persists(db_session, project):
    phrase = await _create(db_session, project)
    service = PhraseService(db_session)
    await service.add_or_update_translation(phrase.id, "de", "Willkommen zurück")
    await service.update_translation_status(phrase.id, "de", TranslationStatus.REJECTED)

    db_session.expire_all()
    reloaded = await service.get_phrase(phrase.id)
    assert reloaded.translations["de"].status == TranslationStatus.REJECTED


@pytest.mark.asyncio
async def test_update_status_of_missing_locale(db_session, project):
    phrase = await _create(db_session, project)
    service = PhraseService(db_session)
    with pytest.raises(NotFoundError) as exc:
        await service.update_translation_status(phrase.id, "it", TranslationStatus.APPROVED)
    assert exc.value.error_code == ErrorCode.TRANSLATION_NOT_FOUND


@pytest.mark.asyncio
async def test_add_translation_invalid_locale(db_session, project):
    phrase = await _create(db_session, project)
    with pytest.raises(ValidationError):
        await PhraseService(db_session).add_or_update_translation(phrase.id, "not a locale", "x")


@pytest.mark.asyncio
async def test_remove_translation(db_session, project):
    phrase = await _create(db_session, project, translations={"fr": {"text": "Bon retour"}})
    service = PhraseService(db_session)

    phrase = await service.remove_translation(phrase.id, "fr")
    assert "fr" not in phrase.translations
    with pytest.raises(NotFoundError):
        await service.remove_translation(phrase.id, "fr")


@pytest.mark.asyncio
async def test_publish_without_translations_fails(db_session, project):
    phrase = await _create(db_session, project)
    service = PhraseService(db_session)

    with pytest.raises(ValidationError):
        await service.publish_phrase(phrase.id)
    assert (await service.get_phrase(phrase.id)).status == PhraseStatus.PENDING


@pytest.mark.asyncio
async def test_publish_with_translation(db_session, project):
    phrase = await _create(db_session, project, translations={"fr": {"text": "Bon retour"}})
    published = await PhraseService(db_session).publish_phrase(phrase.id)
    assert published.status == PhraseStatus.PUBLISHED


@pytest.mark.asyncio
async def test_update_status_and_delete(db_session, project):
    phrase = await _create(db_session, project)
    service = PhraseService(db_session)

    updated = await service.update_status(phrase.id, PhraseStatus.NEEDS_REVIEW)
    assert updated.status == PhraseStatus.NEEDS_REVIEW

    await service.delete_phrase(phrase.id)
    with pytest.raises(NotFoundError):
        await service.get_phrase(phrase.id)
