"""
Machine Translation Service - provider-backed translation of text and phrases
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.exceptions import NotFoundError, ProviderFailureError, ValidationError
from app.core.validation import validate_locale_code, validate_locale_codes
from app.models.phrase import Phrase
from app.models.translation import TranslationStatus
from app.schemas.translation import (
    BatchTranslateResponse,
    TranslatePhraseResponse,
    TranslateTextResponse,
    VariableValidationRead,
)
from app.services.project_lookup import ProjectLookupService
from app.services.translation_providers.base import BaseTranslationProvider
from app.services.variable_preservation import (
    extract_variables,
    preserve_variables_in_translation,
    replace_variables_with_placeholders,
    restore_variables_from_placeholders,
    translate_with_variable_preservation,
    validate_variables,
)

logger = logging.getLogger(__name__)


class MachineTranslationService:
    """
    Runs source text through variable preservation and a provider.

    Machine results are stored as pending, non-human entries so they still
    go through review.
    """

    def __init__(self, db: AsyncSession, provider: BaseTranslationProvider):
        self.db = db
        self.provider = provider

    async def translate_text(
        self,
        text: str,
        target_language: str,
        source_language: str = "en",
    ) -> TranslateTextResponse:
        """
        Translate free text

        Raises:
            ProviderFailureError: The provider failed
        """
        target_language = validate_locale_code(target_language)
        source_language = validate_locale_code(source_language)

        async def _translate(value: str) -> str:
            return await self.provider.translate_text(value, source_language, target_language)

        translated = await translate_with_variable_preservation(text, _translate)
        validation = validate_variables(text, translated)
        return TranslateTextResponse(
            translated_text=translated,
            provider=self.provider.name,
            validation=VariableValidationRead(**validation.to_dict()),
        )

    async def translate_phrase(
        self,
        phrase_id: int,
        target_locales: Optional[List[str]] = None,
        source_locale: Optional[str] = None,
        overwrite: bool = False,
    ) -> TranslatePhraseResponse:
        """
        Machine-translate one phrase into several locales

        Args:
            phrase_id: Phrase ID
            target_locales: Locales to fill; defaults to the project's supported locales
            source_locale: Defaults to the project's source locale
            overwrite: Replace existing entries instead of skipping them

        Returns:
            Locales translated and skipped, with variable warnings per locale

        Raises:
            NotFoundError: Unknown phrase
            ProviderFailureError: The provider failed; entries translated
                before the failure are not stored
        """
        phrase = await self.db.get(Phrase, phrase_id, populate_existing=True)
        if phrase is None:
            raise NotFoundError("phrase", phrase_id)
        project = await ProjectLookupService(self.db).get_by_id(phrase.project_id)

        source = validate_locale_code(source_locale or project.source_locale or "en")
        locales = validate_locale_codes(target_locales or project.supported_locales or [])
        locales = [loc for loc in locales if loc != source]
        if not locales:
            raise ValidationError(
                "No target locales to translate into",
                details={"phrase_id": phrase_id, "source_locale": source},
            )

        response = TranslatePhraseResponse(phrase_id=phrase.id)
        for locale in locales:
            if locale in phrase.translations and not overwrite:
                response.skipped.append(locale)
                continue

            async def _translate(value: str, target: str = locale) -> str:
                return await self.provider.translate_text(value, source, target)

            try:
                translated = await translate_with_variable_preservation(phrase.source_text, _translate)
            except ProviderFailureError:
                await self.db.rollback()
                raise
            validation = validate_variables(phrase.source_text, translated)
            if validation.warnings:
                response.warnings[locale] = validation.warnings

            phrase.translations.upsert(
                locale,
                translated,
                status=TranslationStatus.PENDING,
                is_human=False,
                modified_by=f"machine:{self.provider.name}",
            )
            response.translated.append(locale)

        if response.translated:
            flag_modified(phrase, "translations")
            await self.db.commit()

        logger.info(
            "Phrase machine-translated",
            extra={
                "phrase_id": phrase_id,
                "provider": self.provider.name,
                "translated": response.translated,
                "skipped": response.skipped,
            },
        )
        return response

    async def translate_phrases_batch(
        self,
        phrase_ids: List[int],
        target_locale: str,
        source_locale: Optional[str] = None,
        overwrite: bool = False,
    ) -> BatchTranslateResponse:
        """
        Machine-translate many phrases into one locale with one provider batch call

        Items the provider failed on are counted as failed rather than
        stored. A translation equal to its source is stored like any other.
        """
        target_locale = validate_locale_code(target_locale)
        response = BatchTranslateResponse()

        result = await self.db.execute(
            select(Phrase)
            .where(Phrase.id.in_(phrase_ids))
            .order_by(Phrase.id)
            .execution_options(populate_existing=True)
        )
        phrases = {phrase.id: phrase for phrase in result.scalars().all()}

        work: List[Phrase] = []
        for phrase_id in dict.fromkeys(phrase_ids):
            phrase = phrases.get(phrase_id)
            if phrase is None:
                response.failed += 1
                response.errors.append({"phrase_id": phrase_id, "message": "Phrase not found"})
            elif target_locale in phrase.translations and not overwrite:
                response.skipped += 1
            else:
                work.append(phrase)

        if not work:
            return response

        source = source_locale
        if source is None:
            project = await ProjectLookupService(self.db).get_by_id(work[0].project_id)
            source = project.source_locale or "en"
        source = validate_locale_code(source)

        sanitized_texts: List[str] = []
        variable_maps: List[Dict[int, str]] = []
        for phrase in work:
            sanitized, variable_map = replace_variables_with_placeholders(
                phrase.source_text, extract_variables(phrase.source_text)
            )
            sanitized_texts.append(sanitized)
            variable_maps.append(variable_map)

        translated_texts = await self.provider.translate_batch_items(sanitized_texts, source, target_locale)

        for phrase, variable_map, translated in zip(work, variable_maps, translated_texts):
            if translated is None:
                response.failed += 1
                response.errors.append({
                    "phrase_id": phrase.id,
                    "message": "Provider failed to translate the text",
                })
                continue

            restored = restore_variables_from_placeholders(translated, variable_map)
            if not validate_variables(phrase.source_text, restored).is_valid:
                restored = preserve_variables_in_translation(phrase.source_text, restored)

            phrase.translations.upsert(
                target_locale,
                restored,
                status=TranslationStatus.PENDING,
                is_human=False,
                modified_by=f"machine:{self.provider.name}",
            )
            flag_modified(phrase, "translations")
            response.translated += 1

        await self.db.commit()

        logger.info(
            "Batch machine translation finished",
            extra={
                "provider": self.provider.name,
                "target_locale": target_locale,
                "translated": response.translated,
                "skipped": response.skipped,
                "failed": response.failed,
            },
        )
        return response
