"""
Unit tests for PhraseExtractionService
"""
import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.core.hashing import compute_source_hash
from app.models.phrase import Phrase, PhraseStatus
from app.schemas.extraction import ExtractPhrasesRequest
from app.services.extraction_service import PhraseExtractionService


def _request(project, *phrases, **kwargs):
    return ExtractPhrasesRequest(
        project_key=project.project_key,
        source_url=kwargs.pop("source_url", "https://shop.example.com/"),
        phrases=list(phrases),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_extract_creates_phrase(db_session, project):
    """A new source string becomes a pending phrase with one occurrence"""
    service = PhraseExtractionService(db_session)
    result = await service.batch_extract(_request(
        project,
        {"source_text": "Add to cart", "locations": [{"url": "https://shop.example.com/p/1", "element": "button"}]},
        source_type="web",
    ))

    assert result.success is True
    assert result.created == 1
    assert result.updated == 0
    item = result.results[0]
    assert item.created is True
    assert item.hash == compute_source_hash("Add to cart")

    phrase = await db_session.get(Phrase, item.id)
    assert phrase.key == "add-to-cart"
    assert phrase.status == PhraseStatus.PENDING
    assert phrase.is_archived is False
    assert len(phrase.translations) == 0
    assert phrase.occurrences.count == 1
    assert phrase.occurrences.locations[0].element == "button"
    assert phrase.source_type == "web"


@pytest.mark.asyncio
async def test_extract_same_text_twice_increments_count(db_session, project):
    """Extracting "Welcome" twice keeps one phrase and bumps its count"""
    service = PhraseExtractionService(db_session)

    first = await service.batch_extract(_request(project, {"source_text": "Welcome"}))
    second = await service.batch_extract(_request(project, {"source_text": "  welcome "}))

    assert first.results[0].created is True
    assert second.results[0].created is False
    assert second.results[0].id == first.results[0].id
    assert second.updated == 1

    phrase = await db_session.get(Phrase, first.results[0].id, populate_existing=True)
    assert phrase.occurrences.count == 2
    # stored text is kept as first seen
    assert phrase.source_text == "Welcome"


@pytest.mark.asyncio
async def test_extract_respects_submitted_count(db_session, project):
    service = PhraseExtractionService(db_session)
    result = await service.batch_extract(_request(project, {"source_text": "Checkout", "count": 3}))
    await service.batch_extract(_request(project, {"source_text": "Checkout", "count": 2}))

    phrase = await db_session.get(Phrase, result.results[0].id, populate_existing=True)
    assert phrase.occurrences.count == 5


@pytest.mark.asyncio
async def test_extract_reports_in_batch_duplicates(db_session, project):
    service = PhraseExtractionService(db_session)
    result = await service.batch_extract(_request(
        project,
        {"source_text": "Sign in"},
        {"source_text": "Help"},
        {"source_text": "SIGN IN"},
    ))

    assert result.processed == 3
    assert result.created == 2
    assert result.updated == 1
    assert len(result.duplicates) == 1
    cluster = result.duplicates[0]
    assert cluster.indexes == [0, 2]
    assert cluster.phrase_id == result.results[0].id
    assert result.results[2].created is False


@pytest.mark.asyncio
async def test_extract_verifies_client_hashes(db_session, project):
    service = PhraseExtractionService(db_session)
    result = await service.batch_extract(_request(
        project,
        {"source_text": "Search", "hash": compute_source_hash("Search")},
        {"source_text": "Filter", "hash": "deadbeef"},
        hash_options={"verify_hashes": True},
    ))

    assert result.results[0].hash_verified is True
    assert result.results[1].hash_verified is False


@pytest.mark.asyncio
async def test_extract_unknown_project_raises(db_session, project):
    service = PhraseExtractionService(db_session)
    request = ExtractPhrasesRequest(
        project_key="missing",
        source_url="https://shop.example.com/",
        phrases=[{"source_text": "Hello"}],
    )
    with pytest.raises(NotFoundError):
        await service.batch_extract(request)


@pytest.mark.asyncio
async def test_extract_rejects_oversized_batch(db_session, project):
    service = PhraseExtractionService(db_session, max_batch_size=2)
    with pytest.raises(ValidationError):
        await service.batch_extract(_request(
            project,
            {"source_text": "a"},
            {"source_text": "b"},
            {"source_text": "c"},
        ))


@pytest.mark.asyncio
async def test_extract_key_collision_is_kept(db_session, project):
    """Different texts that slug to the same key are separate phrases"""
    service = PhraseExtractionService(db_session)
    result = await service.batch_extract(_request(
        project,
        {"source_text": "Sign up!"},
        {"source_text": "Sign up?"},
    ))

    assert result.created == 2
    first = await db_session.get(Phrase, result.results[0].id)
    second = await db_session.get(Phrase, result.results[1].id)
    assert first.key == second.key == "sign-up"
    assert first.source_hash != second.source_hash


@pytest.mark.asyncio
async def test_extract_merges_lost_insert_race(db_session, project, monkeypatch):
    """An insert that loses to a concurrent writer becomes a hit on the stored row"""
    service = PhraseExtractionService(db_session)
    first = await service.batch_extract(_request(project, {"source_text": "Welcome"}))

    real_find = service._find_by_hash
    calls = []

    async def stale_find(project_id, source_hash):
        calls.append(source_hash)
        if len(calls) == 1:
            return None
        return await real_find(project_id, source_hash)

    monkeypatch.setattr(service, "_find_by_hash", stale_find)
    second = await service.batch_extract(_request(project, {"source_text": "Welcome"}))

    assert second.failed == 0
    assert second.results[0].created is False
    assert second.results[0].id == first.results[0].id
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_extract_flags_changed_text_only_when_tracking(db_session, project):
    """A hit whose stored text no longer matches its hash is flagged unless tracking is off"""
    service = PhraseExtractionService(db_session)
    created = await service.batch_extract(_request(project, {"source_text": "Sign in"}))
    phrase = await db_session.get(Phrase, created.results[0].id)
    phrase.source_text = "Log in"
    await db_session.commit()

    untracked = await service.batch_extract(_request(
        project, {"source_text": "Sign in"}, hash_options={"track_changes": False},
    ))
    tracked = await service.batch_extract(_request(project, {"source_text": "Sign in"}))

    assert untracked.results[0].text_changed is False
    assert tracked.results[0].text_changed is True
    assert tracked.results[0].id == phrase.id
    reloaded = await db_session.get(Phrase, phrase.id, populate_existing=True)
    assert reloaded.source_text == "Log in"
    assert reloaded.occurrences.count == 3
