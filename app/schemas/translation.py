from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class TranslateTextRequest(BaseModel):
    text: str = Field(..., min_length=1)
    target_language: str
    source_language: str = "en"


class VariableValidationRead(BaseModel):
    is_valid: bool
    missing_variables: List[str] = Field(default_factory=list)
    extra_variables: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class TranslateTextResponse(BaseModel):
    translated_text: str
    provider: str
    validation: VariableValidationRead


class ValidateVariablesRequest(BaseModel):
    source_text: str
    translated_text: str


class TranslatePhraseRequest(BaseModel):
    target_locales: Optional[List[str]] = None
    source_locale: Optional[str] = None
    overwrite: bool = False


class TranslatePhraseResponse(BaseModel):
    phrase_id: int
    translated: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    warnings: Dict[str, List[str]] = Field(default_factory=dict)


class BatchTranslateRequest(BaseModel):
    phrase_ids: List[int] = Field(..., min_length=1)
    target_locale: str
    source_locale: Optional[str] = None
    overwrite: bool = False


class BatchTranslateResponse(BaseModel):
    translated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class ProviderInfo(BaseModel):
    name: str
    available: bool
    max_text_length: int
    default: bool = False
