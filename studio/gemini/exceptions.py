"""
Gemini Generation Exceptions
Custom exceptions for generation calls, polling and credential handling
"""

from typing import Any, Optional

from studio.utils.errors import (
    ExternalServiceError,
    RateLimitError,
    StudioException,
    ValidationError,
)

QUOTA_EXCEEDED_MESSAGE = (
    "API quota exceeded. Please check your billing plan and limits in your "
    "Google AI account. If the issue persists, please try again later."
)


class GeminiError(StudioException):
    """Base exception for generation errors"""


class QuotaExceededError(GeminiError, RateLimitError):
    """Raised when retries on a quota/rate-limit condition are exhausted"""

    def __init__(self, message: str = QUOTA_EXCEEDED_MESSAGE):
        super().__init__(message)


class NoValidKeysError(GeminiError, ValidationError):
    """Raised when no usable API key is configured"""

    def __init__(self, message: str = "API Key is missing."):
        super().__init__(message)


class GenerationFailedError(GeminiError, ExternalServiceError):
    """Raised when the provider reports an error for a generation job"""

    def __init__(self, message: str, error_payload: Optional[Any] = None):
        super().__init__(message, details={"error": error_payload})
        self.error_payload = error_payload


class EmptyResultError(GeminiError, ExternalServiceError):
    """Raised when a call completed but produced no usable artifact"""

    def __init__(self, message: str):
        super().__init__(message)


class VideoDownloadError(GeminiError, ExternalServiceError):
    """Raised when the generated video file cannot be fetched"""

    def __init__(self, status_code: Optional[int], body: str):
        super().__init__(
            f"Failed to download the generated video file. Server response: {body}",
            details={"response_status": status_code},
        )
        self.response_status = status_code
        self.body = body


class GenerationCancelledError(GeminiError):
    """Raised when a caller abandons a long-running operation"""

    def __init__(self, message: str = "Video generation was cancelled."):
        super().__init__(message, status_code=499)
