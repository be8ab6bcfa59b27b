"""
Rotation wrapper tests, including the layering with the backoff executor:
rotation only happens once the executor has given up on the current key.
"""

import asyncio

import pytest

from studio.gemini.exceptions import NoValidKeysError, QuotaExceededError
from studio.gemini.key_store import CredentialStore, MemoryStorage
from studio.gemini.retry import with_retry
from studio.gemini.rotation import call_with_rotation


def _run(coroutine):
    return asyncio.run(coroutine)


def _store(*keys: str) -> CredentialStore:
    store = CredentialStore(MemoryStorage())
    store.set_all(list(keys))
    return store


class _RateLimited(Exception):
    code = 429


class _Backend:
    """Fake provider: fails per key according to a script"""

    def __init__(self, failures_by_key):
        self.failures_by_key = dict(failures_by_key)
        self.calls = []

    async def call(self, api_key: str) -> str:
        self.calls.append(api_key)
        if self.failures_by_key.get(api_key, 0) > 0:
            self.failures_by_key[api_key] -= 1
            raise _RateLimited(f"got status: 429 for {api_key}")
        return f"result from {api_key}"

    async def generate(self, api_key: str) -> str:
        """A generation client call: backoff executor around the provider call"""
        return await with_retry(lambda: self.call(api_key))


@pytest.mark.unit
def test_backoff_recovers_before_rotation_is_considered(sleeps, no_jitter) -> None:
    store = _store("k1", "k2")
    backend = _Backend({"k1": 2})

    result = _run(call_with_rotation(store, backend.generate))

    assert result == "result from k1"
    assert backend.calls == ["k1", "k1", "k1"]
    assert store.active_index == 0
    assert sleeps == [1.0, 2.0]


@pytest.mark.unit
def test_exhausted_backoff_rotates_to_next_key(sleeps, no_jitter) -> None:
    store = _store("k1", "k2")
    backend = _Backend({"k1": 99})

    result = _run(call_with_rotation(store, backend.generate))

    assert result == "result from k2"
    assert backend.calls == ["k1"] * 5 + ["k2"]
    assert store.active_index == 1
    # four backoff waits on k1, then the first rotation wait
    assert sleeps == [1.0, 2.0, 4.0, 8.0, 1.0]


@pytest.mark.unit
def test_single_key_reraises_without_rotation_delay(sleeps, no_jitter) -> None:
    store = _store("k1")
    backend = _Backend({"k1": 99})

    with pytest.raises(QuotaExceededError):
        _run(call_with_rotation(store, backend.generate))

    assert backend.calls == ["k1"] * 5
    assert store.active_index == 0
    assert sleeps == [1.0, 2.0, 4.0, 8.0]


def test_non_rate_limit_error_is_not_rotated(sleeps) -> None:
    store = _store("k1", "k2")

    async def call(api_key: str) -> str:
        raise ValueError("Request contains an invalid argument.")

    with pytest.raises(ValueError):
        _run(call_with_rotation(store, call))

    assert store.active_index == 0
    assert sleeps == []


def test_rotation_delay_grows_per_attempt(sleeps) -> None:
    store = _store("k1", "k2", "k3")
    used = []

    async def call(api_key: str) -> str:
        used.append(api_key)
        if api_key != "k3":
            raise RuntimeError("Resource exhausted")
        return "ok"

    assert _run(call_with_rotation(store, call, max_attempts=3)) == "ok"
    assert used == ["k1", "k2", "k3"]
    assert sleeps == [1.0, 2.0]


def test_last_error_raised_when_attempts_run_out(sleeps) -> None:
    store = _store("k1", "k2", "k3")
    errors = []

    async def call(api_key: str) -> str:
        error = RuntimeError(f"quota exceeded on {api_key}")
        errors.append(error)
        raise error

    with pytest.raises(RuntimeError) as exc_info:
        _run(call_with_rotation(store, call, max_attempts=2))

    assert exc_info.value is errors[-1]
    assert len(errors) == 2
    assert store.active_index == 1


def test_missing_key_fails_before_any_call() -> None:
    store = CredentialStore(MemoryStorage())
    calls = []

    async def call(api_key: str) -> str:
        calls.append(api_key)
        return "never"

    with pytest.raises(NoValidKeysError):
        _run(call_with_rotation(store, call))

    assert calls == []


def test_concurrent_failures_may_rotate_more_than_once(sleeps) -> None:
    store = _store("k1", "k2", "k3")

    async def call(api_key: str) -> str:
        await asyncio.sleep(0)
        if api_key == "k1":
            raise RuntimeError("rate limit")
        return api_key

    async def scenario():
        return await asyncio.gather(
            call_with_rotation(store, call), call_with_rotation(store, call)
        )

    results = _run(scenario())

    # both calls saw k1 fail and each rotated once
    assert store.active_index == 2
    assert all(result in ("k2", "k3") for result in results)
