"""Error taxonomy and upstream error classification.

Every failure that reaches a client is one of the `ContentIntelligenceError`
subclasses below. Upstream SDK exceptions (AWS, Anthropic, OpenAI) are mapped
onto the taxonomy by `classify_exception`; their raw text is logged but never
returned to the caller.
"""

import anthropic
import openai
from botocore.exceptions import BotoCoreError, ClientError

from app.core.logging import get_logger

logger = get_logger(__name__)

RATE_LIMIT_MESSAGE = "AI service rate limit exceeded"
INVALID_REQUEST_MESSAGE = "Invalid request format"

# AWS error codes that signal throttling on Rekognition/Transcribe/S3
_AWS_THROTTLE_CODES = {
    "ThrottlingException",
    "Throttling",
    "TooManyRequestsException",
    "ProvisionedThroughputExceededException",
    "LimitExceededException",
    "SlowDown",
}

# AWS error codes that mean the request itself was malformed
_AWS_BAD_REQUEST_MESSAGES = {
    "ValidationException": INVALID_REQUEST_MESSAGE,
    "BadRequestException": INVALID_REQUEST_MESSAGE,
    "InvalidParameterException": INVALID_REQUEST_MESSAGE,
    "InvalidImageFormatException": "Invalid image format",
    "ImageTooLargeException": "Image file is too large",
}


class ContentIntelligenceError(Exception):
    """Base class for client-facing failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ContentIntelligenceError):
    """Missing or invalid request fields, or unusable content."""

    status_code = 400


class AuthError(ContentIntelligenceError):
    """Authentication or authorization failure."""

    status_code = 401


class UnauthenticatedError(AuthError):
    """No valid caller identity."""

    status_code = 401


class ForbiddenError(AuthError):
    """Caller does not own the target scope or item."""

    status_code = 403


class NotFoundError(ContentIntelligenceError):
    status_code = 404


class ConflictError(ContentIntelligenceError):
    status_code = 409


class RateLimitError(ContentIntelligenceError):
    status_code = 429


class UpstreamServiceError(ContentIntelligenceError):
    status_code = 500


class ParseError(Exception):
    """Model output could not be parsed. Always recovered with a fallback payload."""


def _aws_error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "Unknown")


def classify_exception(exc: Exception, failure_message: str) -> ContentIntelligenceError:
    """
    Map any exception raised while serving a request onto the error taxonomy.

    Args:
        exc: The exception to classify
        failure_message: Generic endpoint-specific message for unclassified failures

    Returns:
        A ContentIntelligenceError carrying the status code and client-safe message
    """
    if isinstance(exc, ContentIntelligenceError):
        return exc

    if isinstance(exc, ClientError):
        code = _aws_error_code(exc)
        logger.error(f"AWS service error: {code}: {exc}", extra={"aws_error_code": code})
        if code in _AWS_THROTTLE_CODES:
            return RateLimitError(RATE_LIMIT_MESSAGE)
        if code in _AWS_BAD_REQUEST_MESSAGES:
            return ValidationError(_AWS_BAD_REQUEST_MESSAGES[code])
        if code == "ConflictException":
            return ConflictError("Transcription job already exists")
        return UpstreamServiceError(failure_message)

    if isinstance(exc, BotoCoreError):
        logger.error(f"AWS client error: {exc}")
        return UpstreamServiceError(failure_message)

    if isinstance(exc, (anthropic.RateLimitError, openai.RateLimitError)):
        logger.warning(f"Model provider rate limited: {exc}")
        return RateLimitError(RATE_LIMIT_MESSAGE)

    if isinstance(exc, (anthropic.BadRequestError, openai.BadRequestError)):
        logger.error(f"Model provider rejected request: {exc}")
        return ValidationError(INVALID_REQUEST_MESSAGE)

    if isinstance(exc, (anthropic.APIError, openai.APIError)):
        logger.error(f"Model provider error: {exc}")
        return UpstreamServiceError(failure_message)

    logger.exception(f"Unclassified error: {exc}")
    return UpstreamServiceError(failure_message)


def is_rate_limit(exc: Exception) -> bool:
    """True when the exception is (or classifies as) an upstream rate-limit signal."""
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, (anthropic.RateLimitError, openai.RateLimitError)):
        return True
    return isinstance(exc, ClientError) and _aws_error_code(exc) in _AWS_THROTTLE_CODES
