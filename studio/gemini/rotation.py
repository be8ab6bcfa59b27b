"""
Rotation-aware call wrapper.

Runs a call with the active key and moves to the next key when the call
fails on quota or rate limits. This sits outside the backoff executor: a
call only reaches this layer once its own retries on the same key are spent.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from studio.gemini.classification import is_rate_limit_error, normalize_error
from studio.gemini.exceptions import NoValidKeysError
from studio.gemini.key_store import CredentialStore, mask_key
from studio.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0


async def call_with_rotation(
    store: CredentialStore,
    api_call: Callable[[str], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    description: Optional[str] = None,
) -> T:
    """
    Call ``api_call(active_key)``, rotating keys on quota/rate-limit failures.

    Args:
        store: Key store shared by every in-flight call
        api_call: Async callable taking the key to use
        max_attempts: Total attempts across all keys
        base_delay: Seconds; attempt ``n`` (0-indexed) waits ``base_delay * (n + 1)``
        description: Label used in log messages

    Returns:
        The result of the first successful call

    Raises:
        NoValidKeysError: If no usable key is configured (before any network call)
        Exception: Non rate-limit errors immediately; rate-limit errors when no
            other key exists or attempts are exhausted
    """
    label = description or getattr(api_call, "__name__", "api call")
    max_attempts = max(1, max_attempts)

    for attempt in range(max_attempts):
        api_key = store.active_key
        if api_key is None:
            raise NoValidKeysError()

        try:
            return await api_call(api_key)
        except Exception as error:
            if not is_rate_limit_error(normalize_error(error)):
                raise
            if attempt >= max_attempts - 1:
                logger.error(f"{label} still rate limited after {max_attempts} attempts")
                raise

            logger.warning(
                f"API key limit reached for {label} "
                f"(attempt {attempt + 1}/{max_attempts}). Rotating to next key...",
                extra={"operation": label, "attempt": attempt + 1, "key": mask_key(api_key)},
            )
            if not store.rotate():
                logger.warning("No more API keys available for rotation")
                raise

            await asyncio.sleep(base_delay * (attempt + 1))

    raise AssertionError("unreachable")
