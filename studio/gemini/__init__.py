"""
Gemini Integration Module
Exports the backoff executor, poller, key store, rotation wrapper and generation client
"""

from studio.gemini.blobs import LocalBlobStore
from studio.gemini.classification import (
    ErrorInfo,
    is_rate_limit_error,
    is_transient_error,
    normalize_error,
)
from studio.gemini.client import GenerationClient
from studio.gemini.config import (
    CharacterVoice,
    GeminiConfig,
    ImageAspectRatio,
    ImageModel,
    Resolution,
    VeoModel,
    VideoAspectRatio,
    VisualStyle,
    get_gemini_config,
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
from studio.gemini.key_store import (
    CredentialStore,
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    is_placeholder_key,
)
from studio.gemini.models import (
    AudioClip,
    GenerationRequest,
    ImageInput,
    ImageMixRequest,
    ImagePayload,
    ImageToImageRequest,
    SpeechRequest,
    TextToImageRequest,
    VideoRequest,
    VideoResult,
)
from studio.gemini.poller import OperationPoller, PollState
from studio.gemini.retry import with_retry
from studio.gemini.rotation import call_with_rotation
from studio.gemini.service import GeminiStudio

__all__ = [
    # Orchestration
    "with_retry",
    "call_with_rotation",
    "OperationPoller",
    "PollState",
    # Classification
    "ErrorInfo",
    "normalize_error",
    "is_transient_error",
    "is_rate_limit_error",
    # Keys
    "CredentialStore",
    "KeyValueStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "is_placeholder_key",
    # Clients
    "GenerationClient",
    "GeminiStudio",
    "LocalBlobStore",
    # Config
    "GeminiConfig",
    "get_gemini_config",
    "ImageModel",
    "VeoModel",
    "ImageAspectRatio",
    "VideoAspectRatio",
    "Resolution",
    "VisualStyle",
    "CharacterVoice",
    # Models
    "GenerationRequest",
    "TextToImageRequest",
    "ImageToImageRequest",
    "ImageMixRequest",
    "VideoRequest",
    "SpeechRequest",
    "ImagePayload",
    "ImageInput",
    "AudioClip",
    "VideoResult",
    # Exceptions
    "GeminiError",
    "QuotaExceededError",
    "NoValidKeysError",
    "GenerationFailedError",
    "EmptyResultError",
    "VideoDownloadError",
    "GenerationCancelledError",
]
