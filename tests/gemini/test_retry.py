import asyncio
import random

import pytest

from studio.gemini.exceptions import QUOTA_EXCEEDED_MESSAGE, QuotaExceededError
from studio.gemini.retry import backoff_delay, with_retry


def _run(coroutine):
    return asyncio.run(coroutine)


class _RateLimited(Exception):
    code = 429


class _Counter:
    def __init__(self, failures, error_factory, result="ok"):
        self.calls = 0
        self.failures = failures
        self.error_factory = error_factory
        self.result = result

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error_factory()
        return self.result


def test_success_needs_no_retry(sleeps) -> None:
    call = _Counter(0, RuntimeError)

    assert _run(with_retry(call)) == "ok"
    assert call.calls == 1
    assert sleeps == []


def test_non_transient_error_is_raised_unchanged_after_one_call(sleeps) -> None:
    original = ValueError("API key not valid")

    async def call():
        call.calls += 1
        raise original

    call.calls = 0

    with pytest.raises(ValueError) as exc_info:
        _run(with_retry(call))

    assert exc_info.value is original
    assert call.calls == 1
    assert sleeps == []


def test_transient_error_recovers(sleeps, no_jitter) -> None:
    call = _Counter(2, lambda: _RateLimited("got status: 429"))

    assert _run(with_retry(call)) == "ok"
    assert call.calls == 3
    assert sleeps == [1.0, 2.0]


def test_persistent_transient_error_becomes_quota_message(sleeps) -> None:
    call = _Counter(99, lambda: RuntimeError("got status: 429 secret-detail"))

    with pytest.raises(QuotaExceededError) as exc_info:
        _run(with_retry(call, max_retries=4))

    assert call.calls == 4
    assert str(exc_info.value) == QUOTA_EXCEEDED_MESSAGE
    assert "secret-detail" not in str(exc_info.value)
    assert exc_info.value.__cause__ is None
    assert len(sleeps) == 3


def test_default_attempt_count_is_five(sleeps) -> None:
    call = _Counter(99, _RateLimited)

    with pytest.raises(QuotaExceededError):
        _run(with_retry(call))

    assert call.calls == 5


def test_delays_grow_exponentially_within_jitter_bounds(sleeps) -> None:
    call = _Counter(99, _RateLimited)

    with pytest.raises(QuotaExceededError):
        _run(with_retry(call, max_retries=5, initial_delay=0.2))

    for attempt, delay in enumerate(sleeps, start=1):
        base = 0.2 * 2 ** (attempt - 1)
        assert base <= delay < base + 0.5


def test_non_transient_error_after_transient_is_propagated(sleeps) -> None:
    errors = iter([_RateLimited("slow down"), KeyError("missing")])

    async def call():
        raise next(errors)

    with pytest.raises(KeyError):
        _run(with_retry(call))

    assert len(sleeps) == 1


@pytest.mark.parametrize("attempt", [1, 2, 3, 4])
def test_backoff_delay_bounds(monkeypatch, attempt: int) -> None:
    monkeypatch.setattr(random, "random", lambda: 0.0)
    assert backoff_delay(attempt) == 2 ** (attempt - 1)

    monkeypatch.setattr(random, "random", lambda: 0.999999)
    assert backoff_delay(attempt) < 2 ** (attempt - 1) + 0.5
