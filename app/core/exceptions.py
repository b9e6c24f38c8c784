"""
Custom exceptions for the phrase localization backend.

Services raise these; the FastAPI error handlers turn them into
StandardErrorResponse payloads.
"""

from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for the application."""

    # Lookup errors
    PROJECT_NOT_FOUND = "PROJECT_NOT_FOUND"
    PHRASE_NOT_FOUND = "PHRASE_NOT_FOUND"
    TRANSLATION_NOT_FOUND = "TRANSLATION_NOT_FOUND"
    NOT_FOUND = "NOT_FOUND"

    # Input errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_PHRASE = "DUPLICATE_PHRASE"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"

    # Store errors
    CONFLICT = "CONFLICT"

    # Upstream errors
    PROVIDER_FAILURE = "PROVIDER_FAILURE"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"

    # Generic errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class LocalizationException(Exception):
    """Base exception for the localization backend."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code


class NotFoundError(LocalizationException):
    """Raised when a project, phrase or translation entry does not exist."""

    _codes = {
        "project": ErrorCode.PROJECT_NOT_FOUND,
        "phrase": ErrorCode.PHRASE_NOT_FOUND,
        "translation": ErrorCode.TRANSLATION_NOT_FOUND,
    }

    def __init__(self, resource: str, identifier: Optional[Any] = None):
        message = f"{resource.capitalize()} not found"
        details: Dict[str, Any] = {"resource": resource}
        if identifier is not None:
            message = f"{resource.capitalize()} not found: {identifier}"
            details["id"] = identifier
        super().__init__(
            message=message,
            error_code=self._codes.get(resource.lower(), ErrorCode.NOT_FOUND),
            details=details,
            status_code=404
        )
        self.resource = resource
        self.identifier = identifier


class ValidationError(LocalizationException):
    """Raised when input is well-formed but violates a business rule."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            status_code=400
        )


class ConflictError(LocalizationException):
    """Raised when a concurrent write wins a uniqueness race that cannot be merged."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFLICT,
            details=details,
            status_code=409
        )


class ProviderFailureError(LocalizationException):
    """Raised when the upstream translation provider fails."""

    def __init__(self, provider: str, message: str = "Translation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"{provider}: {message}",
            error_code=ErrorCode.PROVIDER_FAILURE,
            details=details or {"provider": provider},
            status_code=502
        )
        self.provider = provider


class ProviderUnavailableError(LocalizationException):
    """Raised when no configured translation provider can be used."""

    def __init__(self, message: str = "No translation providers available", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.PROVIDER_UNAVAILABLE,
            details=details,
            status_code=503
        )
