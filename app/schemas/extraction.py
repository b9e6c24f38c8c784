from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from app.schemas.phrase import PhraseLocationIn


class ExtractedPhraseIn(BaseModel):
    source_text: str = Field(..., min_length=1)
    context: Optional[str] = None
    count: Optional[int] = Field(default=None, ge=1)
    locations: List[PhraseLocationIn] = Field(default_factory=list)
    hash: Optional[str] = None


class HashOptions(BaseModel):
    verify_hashes: bool = False
    track_changes: bool = True


class ExtractPhrasesRequest(BaseModel):
    project_key: str = Field(..., min_length=1)
    source_url: str
    source_type: Optional[str] = None
    phrases: List[ExtractedPhraseIn]
    metadata: Optional[Dict[str, Any]] = None
    hash_options: Optional[HashOptions] = None


class ExtractionItemResult(BaseModel):
    index: int
    created: bool
    id: int
    hash: str
    text_changed: bool = False
    hash_verified: Optional[bool] = None


class DuplicateCluster(BaseModel):
    hash: str
    indexes: List[int]
    phrase_id: Optional[int] = None


class ExtractionError(BaseModel):
    index: int
    source_text: str
    message: str


class ExtractionResult(BaseModel):
    success: bool
    processed: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    results: List[ExtractionItemResult] = Field(default_factory=list)
    duplicates: List[DuplicateCluster] = Field(default_factory=list)
    errors: List[ExtractionError] = Field(default_factory=list)
