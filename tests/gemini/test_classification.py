import httpx
import pytest

from studio.gemini.classification import (
    ErrorInfo,
    is_rate_limit_error,
    is_transient_error,
    normalize_error,
)
from studio.gemini.exceptions import (
    EmptyResultError,
    GeminiError,
    GenerationCancelledError,
    GenerationFailedError,
    NoValidKeysError,
    QuotaExceededError,
    VideoDownloadError,
)
from studio.utils.errors import ExternalServiceError, RateLimitError, ValidationError


class _ProviderError(Exception):
    def __init__(self, code, message):
        self.code = code
        super().__init__(message)


def test_normalize_reads_provider_code() -> None:
    info = normalize_error(_ProviderError(429, "429 RESOURCE_EXHAUSTED. {...}"))

    assert info.status_code == 429
    assert "RESOURCE_EXHAUSTED" in info.message


def test_normalize_reads_httpx_status() -> None:
    request = httpx.Request("GET", "https://example.test")
    response = httpx.Response(503, request=request)
    error = httpx.HTTPStatusError("unavailable", request=request, response=response)

    assert normalize_error(error).status_code == 503


def test_normalize_plain_exception_has_no_status() -> None:
    info = normalize_error(RuntimeError("boom"))

    assert info == ErrorInfo(message="boom", status_code=None)


@pytest.mark.parametrize(
    "info",
    [
        ErrorInfo(message="anything", status_code=429),
        ErrorInfo(message="[GoogleGenerativeAI Error]: got status: 429 Too Many Requests"),
        ErrorInfo(message="Quota exceeded for metric generate_requests"),
        ErrorInfo(message="RESOURCE_EXHAUSTED"),
    ],
)
def test_transient_errors(info: ErrorInfo) -> None:
    assert is_transient_error(info)


@pytest.mark.parametrize(
    "info",
    [
        ErrorInfo(message="API key not valid", status_code=400),
        ErrorInfo(message="connection reset by peer"),
        ErrorInfo(message="Internal error", status_code=500),
    ],
)
def test_non_transient_errors(info: ErrorInfo) -> None:
    assert not is_transient_error(info)
    assert not is_rate_limit_error(info)


def test_rate_limit_rule_is_case_insensitive() -> None:
    assert is_rate_limit_error(ErrorInfo(message="Your QUOTA has been used"))
    assert is_rate_limit_error(ErrorInfo(message="Rate Limit reached"))
    assert is_rate_limit_error(ErrorInfo(message="Resource Exhausted"))


def test_consolidated_quota_error_triggers_rotation() -> None:
    info = normalize_error(QuotaExceededError())

    assert info.status_code == 429
    assert is_rate_limit_error(info)


@pytest.mark.parametrize(
    "error, base, status_code",
    [
        (QuotaExceededError(), RateLimitError, 429),
        (NoValidKeysError(), ValidationError, 400),
        (EmptyResultError("nothing"), ExternalServiceError, 502),
        (GenerationFailedError("boom", {"code": 13}), ExternalServiceError, 502),
        (VideoDownloadError(403, "denied"), ExternalServiceError, 502),
        (GenerationCancelledError(), GeminiError, 499),
    ],
)
def test_generation_errors_map_to_studio_errors(error, base, status_code) -> None:
    assert isinstance(error, GeminiError)
    assert isinstance(error, base)
    assert error.status_code == status_code
    assert str(error) == error.message
