import asyncio
from types import SimpleNamespace

import pytest

from studio.gemini.exceptions import (
    EmptyResultError,
    GenerationCancelledError,
    GenerationFailedError,
)
from studio.gemini.poller import (
    EMPTY_RESULT_MESSAGE,
    UNKNOWN_FAILURE_MESSAGE,
    OperationPoller,
    PollState,
    error_message,
    video_uri,
)


def _run(coroutine):
    return asyncio.run(coroutine)


def _pending(name="operations/abc"):
    return SimpleNamespace(name=name, done=False, error=None, response=None)


def _done(uri="https://files.test/video.mp4"):
    videos = [SimpleNamespace(video=SimpleNamespace(uri=uri))] if uri else []
    return SimpleNamespace(
        name="operations/abc",
        done=True,
        error=None,
        response=SimpleNamespace(generated_videos=videos),
    )


def _failed(message):
    return SimpleNamespace(
        name="operations/abc", done=True, error={"code": 3, "message": message}, response=None
    )


class _Backend:
    def __init__(self, submitted, statuses):
        self.submitted = submitted
        self.statuses = list(statuses)
        self.refreshed = []

    async def submit(self):
        return self.submitted

    async def refresh(self, operation):
        self.refreshed.append(operation.name)
        status = self.statuses.pop(0)
        if isinstance(status, Exception):
            raise status
        return status


def test_polls_until_done_and_returns_uri(sleeps) -> None:
    backend = _Backend(_pending(), [_pending(), _pending(), _done()])
    poller = OperationPoller(backend.submit, backend.refresh)

    uri = _run(poller.run())

    assert uri == "https://files.test/video.mp4"
    assert poller.state == PollState.COMPLETED
    assert poller.polls == 3
    assert sleeps == [10.0, 10.0, 10.0]


def test_already_done_handle_skips_polling(sleeps) -> None:
    backend = _Backend(_done(), [])
    poller = OperationPoller(backend.submit, backend.refresh)

    assert _run(poller.run()) == "https://files.test/video.mp4"
    assert backend.refreshed == []
    assert sleeps == []


def test_provider_error_payload_fails_with_its_message(sleeps) -> None:
    backend = _Backend(_pending(), [_failed("Prompt was blocked by safety filters")])
    poller = OperationPoller(backend.submit, backend.refresh)

    with pytest.raises(GenerationFailedError, match="Prompt was blocked"):
        _run(poller.run())

    assert poller.state == PollState.FAILED


def test_non_text_error_message_is_coerced(sleeps) -> None:
    backend = _Backend(_pending(), [_failed(12345)])
    poller = OperationPoller(backend.submit, backend.refresh)

    with pytest.raises(GenerationFailedError) as exc_info:
        _run(poller.run())

    assert str(exc_info.value) == "12345"
    assert exc_info.value.error_payload == {"code": 3, "message": 12345}


def test_done_without_video_is_empty_result(sleeps) -> None:
    backend = _Backend(_pending(), [_done(uri=None)])
    poller = OperationPoller(backend.submit, backend.refresh)

    with pytest.raises(EmptyResultError, match=EMPTY_RESULT_MESSAGE):
        _run(poller.run())

    assert poller.state == PollState.FAILED


def test_rate_limited_poll_is_retried(sleeps, no_jitter) -> None:
    rate_limited = RuntimeError("got status: 429")
    backend = _Backend(_pending(), [rate_limited, _done()])
    poller = OperationPoller(backend.submit, backend.refresh, interval=5.0)

    assert _run(poller.run()) == "https://files.test/video.mp4"
    assert backend.refreshed == ["operations/abc", "operations/abc"]
    assert sleeps == [5.0, 1.0]


def test_progress_callback_receives_status_lines(sleeps) -> None:
    backend = _Backend(_pending(), [_done()])
    messages = []
    poller = OperationPoller(backend.submit, backend.refresh, progress=messages.append)

    _run(poller.run())

    assert messages[0] == "Sending video generation request to the model..."
    assert any(message.startswith("Polling video generation status") for message in messages)
    assert messages[-1] == "Video processing complete."


def test_cancel_event_stops_polling(sleeps) -> None:
    backend = _Backend(_pending(), [_pending(), _pending(), _done()])

    async def scenario():
        cancel = asyncio.Event()
        poller = OperationPoller(
            backend.submit,
            backend.refresh,
            progress=lambda message: cancel.set() if "poll 1" in message else None,
            cancel_event=cancel,
        )
        with pytest.raises(GenerationCancelledError):
            await poller.run()
        return poller

    poller = _run(scenario())

    assert poller.state == PollState.FAILED
    assert backend.refreshed == ["operations/abc"]


def test_error_message_helpers() -> None:
    assert error_message({"message": "bad"}) == "bad"
    assert error_message(SimpleNamespace(message="bad")) == "bad"
    assert error_message({}) == UNKNOWN_FAILURE_MESSAGE
    assert video_uri(_done()) == "https://files.test/video.mp4"
    assert video_uri(_pending()) is None
