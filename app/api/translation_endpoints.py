"""
Translation API endpoints - machine translation and variable checks
"""
from typing import List

from fastapi import APIRouter, Depends

from app.core.dependencies import get_machine_translation_service, get_provider_registry
from app.schemas.base import Envelope
from app.schemas.translation import (
    BatchTranslateRequest,
    BatchTranslateResponse,
    ProviderInfo,
    TranslatePhraseRequest,
    TranslatePhraseResponse,
    TranslateTextRequest,
    TranslateTextResponse,
    ValidateVariablesRequest,
    VariableValidationRead,
)
from app.services.machine_translation_service import MachineTranslationService
from app.services.translation_providers import TranslationProviderRegistry
from app.services.variable_preservation import validate_variables

router = APIRouter(prefix="/translations", tags=["translations"])


@router.post("/translate", response_model=Envelope[TranslateTextResponse])
async def translate_text(
    request: TranslateTextRequest,
    service: MachineTranslationService = Depends(get_machine_translation_service),
):
    """
    Translate free text, keeping {{variables}} intact

    - **provider** (query): Provider name; the configured default when omitted
    """
    result = await service.translate_text(request.text, request.target_language, request.source_language)
    return Envelope(status="ok", data=result)


@router.post("/validate-variables", response_model=Envelope[VariableValidationRead])
async def check_variables(request: ValidateVariablesRequest):
    """Compare the {{variables}} of a source text and a translation"""
    result = validate_variables(request.source_text, request.translated_text)
    return Envelope(status="ok", data=VariableValidationRead(**result.to_dict()))


@router.post("/phrases/{phrase_id}", response_model=Envelope[TranslatePhraseResponse])
async def translate_phrase(
    phrase_id: int,
    request: TranslatePhraseRequest,
    service: MachineTranslationService = Depends(get_machine_translation_service),
):
    """Machine-translate a phrase into several locales; results are stored as pending"""
    result = await service.translate_phrase(
        phrase_id,
        target_locales=request.target_locales,
        source_locale=request.source_locale,
        overwrite=request.overwrite,
    )
    return Envelope(status="ok", data=result)


@router.post("/batch", response_model=Envelope[BatchTranslateResponse])
async def translate_batch(
    request: BatchTranslateRequest,
    service: MachineTranslationService = Depends(get_machine_translation_service),
):
    """Machine-translate many phrases into one locale"""
    result = await service.translate_phrases_batch(
        request.phrase_ids,
        request.target_locale,
        source_locale=request.source_locale,
        overwrite=request.overwrite,
    )
    return Envelope(status="ok", data=result)


@router.get("/providers", response_model=Envelope[List[ProviderInfo]])
async def list_providers(registry: TranslationProviderRegistry = Depends(get_provider_registry)):
    return Envelope(status="ok", data=[ProviderInfo(**info) for info in registry.describe()])
