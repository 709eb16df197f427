"""Tests for upstream error classification."""

import anthropic
import httpx
import openai
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    RateLimitError,
    UpstreamServiceError,
    ValidationError,
    classify_exception,
    is_rate_limit,
)


def _client_error(code: str, operation: str = "DetectText") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


def _http_response(status_code: int) -> httpx.Response:
    request = httpx.Request("POST", "https://api.example.com/v1/messages")
    return httpx.Response(status_code, request=request)


@pytest.mark.parametrize(
    "code,error_type,message",
    [
        ("ThrottlingException", RateLimitError, "AI service rate limit exceeded"),
        ("TooManyRequestsException", RateLimitError, "AI service rate limit exceeded"),
        ("ValidationException", ValidationError, "Invalid request format"),
        ("InvalidImageFormatException", ValidationError, "Invalid image format"),
        ("ImageTooLargeException", ValidationError, "Image file is too large"),
        ("ConflictException", ConflictError, "Transcription job already exists"),
        ("AccessDeniedException", UpstreamServiceError, "Image analysis failed"),
    ],
)
def test_aws_errors_are_classified(code, error_type, message):
    error = classify_exception(_client_error(code), "Image analysis failed")

    assert isinstance(error, error_type)
    assert error.message == message


def test_status_codes():
    assert classify_exception(_client_error("ThrottlingException"), "x").status_code == 429
    assert classify_exception(_client_error("ValidationException"), "x").status_code == 400
    assert classify_exception(_client_error("ConflictException"), "x").status_code == 409
    assert classify_exception(_client_error("InternalFailure"), "x").status_code == 500


def test_botocore_connection_error_is_upstream_failure():
    error = classify_exception(EndpointConnectionError(endpoint_url="https://s3"), "Vector search failed")
    assert isinstance(error, UpstreamServiceError)
    assert error.message == "Vector search failed"


def test_anthropic_rate_limit():
    exc = anthropic.RateLimitError("slow down", response=_http_response(429), body=None)

    error = classify_exception(exc, "AI service unavailable")

    assert isinstance(error, RateLimitError)
    assert is_rate_limit(exc)


def test_openai_bad_request():
    exc = openai.BadRequestError("bad input", response=_http_response(400), body=None)

    error = classify_exception(exc, "AI service unavailable")

    assert isinstance(error, ValidationError)
    assert error.message == "Invalid request format"


def test_anthropic_server_error():
    exc = anthropic.InternalServerError("boom", response=_http_response(500), body=None)
    error = classify_exception(exc, "Content analysis failed")
    assert isinstance(error, UpstreamServiceError)
    assert error.message == "Content analysis failed"


def test_taxonomy_errors_pass_through():
    original = ForbiddenError("Access denied")
    assert classify_exception(original, "ignored") is original


def test_unknown_errors_do_not_leak_details():
    error = classify_exception(RuntimeError("secret connection string"), "AI service unavailable")
    assert error.status_code == 500
    assert error.message == "AI service unavailable"


def test_is_rate_limit():
    assert is_rate_limit(RateLimitError("x"))
    assert is_rate_limit(_client_error("ThrottlingException"))
    assert not is_rate_limit(_client_error("ValidationException"))
    assert not is_rate_limit(ValueError("x"))
