from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
import enum


class BatchOperation(str, enum.Enum):
    APPROVE_TRANSLATIONS = "approve_translations"
    REJECT_TRANSLATIONS = "reject_translations"
    ARCHIVE = "archive"
    DELETE = "delete"
    TAG = "tag"
    UNTAG = "untag"
    PUBLISH = "publish"


class BatchOperationRequest(BaseModel):
    # plain str so unknown operations reach the service and fail as a 400
    operation: str
    phrase_ids: List[int] = Field(..., min_length=1)
    tag: Optional[str] = None
    locale: Optional[str] = None
    reviewed_by: Optional[str] = None


class BatchOperationResult(BaseModel):
    success: bool
    operation: str
    count: int
    affected: int = 0
    skipped: int = 0
    errors: List[Dict[str, Any]] = Field(default_factory=list)
