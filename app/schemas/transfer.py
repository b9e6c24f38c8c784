from pydantic import BaseModel, Field
from typing import Any, Dict, List
import enum


class ExportFormat(str, enum.Enum):
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"


class ExportResult(BaseModel):
    data: bytes
    filename: str
    mime_type: str


class ImportResult(BaseModel):
    imported: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: List[Dict[str, Any]] = Field(default_factory=list)
