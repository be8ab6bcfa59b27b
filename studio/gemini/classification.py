"""
Error classification for generation calls.

Provider SDKs and HTTP clients raise differently shaped errors. Everything is
first reduced to an ``ErrorInfo`` (status code + message) so the retry and
rotation rules below can be tested without any SDK objects.
"""

from dataclasses import dataclass
from typing import Optional

import httpx

# Backoff executor: transient conditions worth waiting out on the same key
TRANSIENT_INDICATORS = (
    "got status: 429",
    "quota exceeded",
    "resource_exhausted",
    "resource exhausted",
    "rate limit",
)

# Rotation wrapper: anything that suggests the key itself is used up
RATE_LIMIT_INDICATORS = (
    "quota",
    "rate limit",
    "resource exhausted",
    "resource_exhausted",
)


@dataclass(frozen=True)
class ErrorInfo:
    """Normalized view of an error raised by a generation call"""

    message: str
    status_code: Optional[int] = None


def _status_from(error: BaseException) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    # google.genai.errors.APIError exposes `code`; our own errors use `status_code`
    for attr in ("code", "status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def normalize_error(error: BaseException) -> ErrorInfo:
    """Reduce any exception to an ErrorInfo"""
    return ErrorInfo(message=str(error), status_code=_status_from(error))


def is_transient_error(info: ErrorInfo) -> bool:
    """True when the backoff executor should retry on the same credential"""
    if info.status_code == 429:
        return True
    message = info.message.lower()
    return any(indicator in message for indicator in TRANSIENT_INDICATORS)


def is_rate_limit_error(info: ErrorInfo) -> bool:
    """True when the rotation wrapper should move to the next credential"""
    if info.status_code == 429:
        return True
    message = info.message.lower()
    return any(indicator in message for indicator in RATE_LIMIT_INDICATORS)
