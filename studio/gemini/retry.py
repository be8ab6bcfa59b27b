"""
Backoff executor for generation calls.

Retries an async call on the same credential while the provider reports a
transient rate/quota condition. Once retries run out on such a condition the
caller receives a single QuotaExceededError instead of the provider error.
"""

import asyncio
import random
from typing import Awaitable, Callable, Optional, TypeVar

from studio.gemini.classification import is_transient_error, normalize_error
from studio.gemini.exceptions import QuotaExceededError
from studio.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_JITTER = 0.5


def backoff_delay(
    attempt: int,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_jitter: float = DEFAULT_MAX_JITTER,
) -> float:
    """
    Seconds to wait before retry number ``attempt`` (1-indexed).

    The result lies in ``[initial_delay * 2**(attempt-1), ... + max_jitter)``.
    """
    return initial_delay * (2 ** (attempt - 1)) + random.random() * max_jitter


async def with_retry(
    api_call: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_jitter: float = DEFAULT_MAX_JITTER,
    description: Optional[str] = None,
) -> T:
    """
    Run an async call with exponential backoff on rate-limit errors.

    Args:
        api_call: Zero-argument callable returning a fresh awaitable per attempt
        max_retries: Total number of attempts, including the first
        initial_delay: Delay in seconds before the first retry
        max_jitter: Upper bound (exclusive) of the random extra delay
        description: Label used in log messages

    Returns:
        The result of the first successful call

    Raises:
        QuotaExceededError: If every attempt failed on a rate-limit condition
        Exception: Any non-transient error, unchanged, after a single attempt
    """
    label = description or getattr(api_call, "__name__", "api call")
    attempt = 0

    while True:
        try:
            return await api_call()
        except Exception as error:
            transient = is_transient_error(normalize_error(error))

            if transient and attempt < max_retries - 1:
                attempt += 1
                wait_time = backoff_delay(attempt, initial_delay, max_jitter)
                logger.warning(
                    f"Rate limit exceeded for {label}. Retrying in {wait_time:.2f}s... "
                    f"(Attempt {attempt}/{max_retries - 1})",
                    extra={"operation": label, "attempt": attempt, "wait_seconds": wait_time},
                )
                await asyncio.sleep(wait_time)
                continue

            logger.error(
                f"{label} failed after {attempt} retries or with a non-retriable error: "
                f"{type(error).__name__}: {error}"
            )
            if transient:
                raise QuotaExceededError() from None
            raise
