"""
Long-running operation poller for video generation.

The backend runs video synthesis as an asynchronous job:

    submitted -> polling -> completed | failed

Submission and every status fetch go through the backoff executor. Polls are
strictly sequential, one every ``interval`` seconds, and there is no overall
deadline; a job lasts as long as the backend takes.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from studio.gemini.exceptions import (
    EmptyResultError,
    GenerationCancelledError,
    GenerationFailedError,
)
from studio.gemini.retry import with_retry
from studio.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 10.0

UNKNOWN_FAILURE_MESSAGE = "Video generation failed due to an unknown error."
EMPTY_RESULT_MESSAGE = "Video generation failed or returned an empty result."

ProgressCallback = Callable[[str], None]


class PollState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def error_message(error: Any) -> str:
    """Text for a provider error payload; the message type is not guaranteed"""
    message = _field(error, "message")
    text = str(message) if message is not None else ""
    return text or UNKNOWN_FAILURE_MESSAGE


def video_uri(operation: Any) -> Optional[str]:
    """First generated video URI of a finished operation, if any"""
    response = _field(operation, "response") or _field(operation, "result")
    videos = _field(response, "generated_videos") or []
    if not videos:
        return None
    return _field(_field(videos[0], "video"), "uri") or None


class OperationPoller:
    """
    Drives one video job from submission to a downloadable URI.

    ``state`` reflects where the job is, for callers that display progress.
    """

    def __init__(
        self,
        submit: Callable[[], Awaitable[Any]],
        refresh: Callable[[Any], Awaitable[Any]],
        interval: float = DEFAULT_POLL_INTERVAL,
        retry_options: Optional[dict] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Args:
            submit: Starts the job and returns the operation handle
            refresh: Re-fetches the status of a handle
            interval: Seconds between status fetches
            retry_options: Keyword arguments for the backoff executor
            progress: Receives human-readable status lines
            cancel_event: When set, polling stops before the next fetch
        """
        self.submit = submit
        self.refresh = refresh
        self.interval = interval
        self.retry_options = retry_options or {}
        self.progress = progress
        self.cancel_event = cancel_event
        self.state = PollState.SUBMITTED
        self.polls = 0

    def _report(self, message: str) -> None:
        logger.info(message)
        if self.progress is not None:
            self.progress(message)

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.state = PollState.FAILED
            raise GenerationCancelledError()

    def _fail(self, error: Exception) -> Exception:
        self.state = PollState.FAILED
        return error

    async def run(self) -> str:
        """
        Submit the job and poll it to a terminal state.

        Returns:
            str: URI of the generated video (provider-authenticated, not for the UI)

        Raises:
            GenerationFailedError: The operation reported an error payload
            EmptyResultError: The operation finished without a retrievable video
            GenerationCancelledError: ``cancel_event`` was set while polling
        """
        self._report("Sending video generation request to the model...")
        operation = await with_retry(
            self.submit, description="video submit", **self.retry_options
        )
        self._report("Request received. Waiting for video processing to start...")

        if not _field(operation, "done"):
            self.state = PollState.POLLING

        while not _field(operation, "done"):
            self._check_cancelled()
            await asyncio.sleep(self.interval)
            self._check_cancelled()

            current = operation
            operation = await with_retry(
                lambda: self.refresh(current),
                description="video status",
                **self.retry_options,
            )
            self.polls += 1
            self._report(f"Polling video generation status... (poll {self.polls})")

        error = _field(operation, "error")
        if error:
            logger.error(f"Video generation failed with an error: {error}")
            raise self._fail(GenerationFailedError(error_message(error), error_payload=error))

        uri = video_uri(operation)
        if not uri:
            logger.error("Video generation finished but no download link was provided.")
            raise self._fail(EmptyResultError(EMPTY_RESULT_MESSAGE))

        self.state = PollState.COMPLETED
        self._report("Video processing complete.")
        return uri
