"""
Unit tests for the exception hierarchy and standardized error responses
"""
import json

import pytest
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from app.core.error_handlers import ErrorHandler
from app.core.exceptions import (
    ErrorCode,
    NotFoundError,
    ProviderFailureError,
    ProviderUnavailableError,
    ValidationError,
)
from app.schemas.base import StandardErrorResponse


def _request(path="/api/v1/phrases/1"):
    request = Request({"type": "http", "method": "GET", "path": path, "headers": [], "query_string": b""})
    request.state.request_id = "req-1"
    return request


def test_not_found_codes_follow_resource():
    assert NotFoundError("project", "web").error_code == ErrorCode.PROJECT_NOT_FOUND
    assert NotFoundError("phrase", 5).message == "Phrase not found: 5"
    assert NotFoundError("translation", "5/fr").status_code == 404
    assert NotFoundError("widget").error_code == ErrorCode.NOT_FOUND


def test_status_codes():
    assert ValidationError("bad").status_code == 400
    failure = ProviderFailureError("mymemory", "timeout")
    assert failure.status_code == 502
    assert failure.message == "mymemory: timeout"
    assert ProviderUnavailableError().status_code == 503


def test_error_code_must_be_uppercase():
    with pytest.raises(PydanticValidationError):
        StandardErrorResponse(error_code="bad_code", message="x")


@pytest.mark.asyncio
async def test_localization_exception_response():
    handler = ErrorHandler()
    response = await handler.handle_localization_exception(_request(), NotFoundError("phrase", 1))

    assert response.status_code == 404
    body = json.loads(response.body)
    assert body["error_code"] == "PHRASE_NOT_FOUND"
    assert body["request_id"] == "req-1"
    assert body["details"] == {"resource": "phrase", "id": 1}
    assert handler.get_error_statistics()["error_counts"] == {"PHRASE_NOT_FOUND": 1}


@pytest.mark.asyncio
async def test_generic_exception_is_500():
    handler = ErrorHandler()
    response = await handler.handle_generic_exception(_request(), RuntimeError("boom"))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body["error_code"] == "INTERNAL_SERVER_ERROR"
    assert "boom" not in body["message"]
