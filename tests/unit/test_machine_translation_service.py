"""
Unit tests for MachineTranslationService
"""
from typing import List

import pytest

from app.core.exceptions import NotFoundError, ProviderFailureError, ValidationError
from app.models.phrase import Phrase
from app.models.translation import TranslationStatus
from app.schemas.phrase import PhraseCreate
from app.services.machine_translation_service import MachineTranslationService
from app.services.phrase_service import PhraseService
from app.services.translation_providers import MockTranslationProvider
from app.services.translation_providers.base import BaseTranslationProvider


class FlakyProvider(BaseTranslationProvider):
    """Fails for one target locale or for texts containing "untranslatable"; echoes "Acme" unchanged."""

    name = "flaky"

    def __init__(self, failing_locale: str = None):
        self.failing_locale = failing_locale
        self.calls: List[str] = []

    def is_available(self) -> bool:
        return True

    async def translate_text(self, text, source_language, target_language):
        self.calls.append(text)
        if target_language == self.failing_locale:
            raise ProviderFailureError(self.name, "upstream down")
        if "untranslatable" in text:
            raise ProviderFailureError(self.name, "cannot translate")
        if "Acme" in text:
            return text
        return f"<{target_language}>{text}"

    def get_supported_languages(self):
        return ["*"]


async def _phrase(db_session, project, text="Hello {{name}}", **kwargs):
    return await PhraseService(db_session).create_phrase(
        PhraseCreate(project_id=project.id, source_text=text, **kwargs)
    )


@pytest.mark.asyncio
async def test_translate_text_keeps_variables(db_session):
    service = MachineTranslationService(db_session, MockTranslationProvider())
    response = await service.translate_text("Hi {{name}}, {{count}} new", "fr")

    assert response.translated_text == "[fr] Hi {{name}}, {{count}} new"
    assert response.provider == "mock"
    assert response.validation.is_valid is True


@pytest.mark.asyncio
async def test_translate_text_invalid_locale(db_session):
    service = MachineTranslationService(db_session, MockTranslationProvider())
    with pytest.raises(ValidationError):
        await service.translate_text("Hello", "???")


@pytest.mark.asyncio
async def test_translate_phrase_defaults_to_project_locales(db_session, project):
    """Project supports en, fr, de with en as source: fr and de are filled"""
    phrase = await _phrase(db_session, project)
    service = MachineTranslationService(db_session, MockTranslationProvider())

    response = await service.translate_phrase(phrase.id)
    assert response.translated == ["fr", "de"]
    assert response.skipped == []

    reloaded = await db_session.get(Phrase, phrase.id, populate_existing=True)
    entry = reloaded.translations["fr"]
    assert entry.text == "[fr] Hello {{name}}"
    assert entry.status == TranslationStatus.PENDING
    assert entry.is_human is False
    assert entry.modified_by == "machine:mock"


@pytest.mark.asyncio
async def test_translate_phrase_skips_existing_unless_overwrite(db_session, project):
    phrase = await _phrase(db_session, project, translations={"fr": {"text": "Bonjour {{name}}"}})
    service = MachineTranslationService(db_session, MockTranslationProvider())

    response = await service.translate_phrase(phrase.id, ["fr", "de"])
    assert response.translated == ["de"]
    assert response.skipped == ["fr"]

    response = await service.translate_phrase(phrase.id, ["fr"], overwrite=True)
    assert response.translated == ["fr"]
    reloaded = await db_session.get(Phrase, phrase.id, populate_existing=True)
    assert reloaded.translations["fr"].text == "[fr] Hello {{name}}"


@pytest.mark.asyncio
async def test_translate_phrase_without_targets(db_session, project):
    phrase = await _phrase(db_session, project)
    service = MachineTranslationService(db_session, MockTranslationProvider())
    with pytest.raises(ValidationError):
        await service.translate_phrase(phrase.id, ["en"])


@pytest.mark.asyncio
async def test_translate_phrase_provider_failure_stores_nothing(db_session, project):
    phrase = await _phrase(db_session, project)
    service = MachineTranslationService(db_session, FlakyProvider(failing_locale="de"))

    with pytest.raises(ProviderFailureError):
        await service.translate_phrase(phrase.id, ["fr", "de"])

    reloaded = await db_session.get(Phrase, phrase.id, populate_existing=True)
    assert len(reloaded.translations) == 0


@pytest.mark.asyncio
async def test_translate_missing_phrase(db_session, project):
    service = MachineTranslationService(db_session, MockTranslationProvider())
    with pytest.raises(NotFoundError):
        await service.translate_phrase(404)


@pytest.mark.asyncio
async def test_batch_translate_counts(db_session, project):
    ok = await _phrase(db_session, project, "Welcome {{user}}")
    done = await _phrase(db_session, project, "Done", translations={"fr": {"text": "Fini"}})
    broken = await _phrase(db_session, project, "untranslatable slogan")

    provider = FlakyProvider()
    service = MachineTranslationService(db_session, provider)
    response = await service.translate_phrases_batch([ok.id, done.id, broken.id, 999], "fr")

    assert response.translated == 1
    assert response.skipped == 1
    assert response.failed == 2
    assert {e["phrase_id"] for e in response.errors} == {999, broken.id}
    # variables never reach the provider
    assert provider.calls == ["Welcome <VAR0>", "untranslatable slogan"]

    reloaded = await db_session.get(Phrase, ok.id, populate_existing=True)
    assert reloaded.translations["fr"].text == "<fr>Welcome {{user}}"
    reloaded_broken = await db_session.get(Phrase, broken.id, populate_existing=True)
    assert "fr" not in reloaded_broken.translations


@pytest.mark.asyncio
async def test_batch_translate_stores_translation_equal_to_source(db_session, project):
    """Brand names and variable-only texts legitimately translate to themselves."""
    brand = await _phrase(db_session, project, "Acme")
    only_variable = await _phrase(db_session, project, "{{name}}")

    service = MachineTranslationService(db_session, FlakyProvider())
    response = await service.translate_phrases_batch([brand.id, only_variable.id], "fr")

    assert response.translated == 2
    assert response.failed == 0
    reloaded = await db_session.get(Phrase, brand.id, populate_existing=True)
    assert reloaded.translations["fr"].text == "Acme"
    assert reloaded.translations["fr"].is_human is False
