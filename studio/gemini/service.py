"""
Gemini Studio Service
Runs generation calls with the active key from a shared CredentialStore,
rotating to the next key when one runs out of quota.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

import httpx

from studio.gemini.blobs import LocalBlobStore
from studio.gemini.client import AspectRatioLike, GenerationClient
from studio.gemini.config import GeminiConfig, get_gemini_config
from studio.gemini.key_store import CredentialStore
from studio.gemini.models import (
    AudioClip,
    ImageInput,
    ImageMixRequest,
    ImagePayload,
    ImageToImageRequest,
    TextToImageRequest,
    VideoRequest,
    VideoResult,
)
from studio.gemini.poller import ProgressCallback
from studio.gemini.rotation import call_with_rotation
from studio.utils.config import Settings, get_settings
from studio.utils.logger import get_logger
from studio.utils.logging_config import setup_logging

logger = get_logger(__name__)

T = TypeVar("T")

ImageRequest = Union[TextToImageRequest, ImageToImageRequest, ImageMixRequest]


class GeminiStudio:
    """
    Entry point for the studio tools.

    Every method resolves the active key at call time, so concurrent requests
    share one CredentialStore and pick up rotations made by each other.
    """

    def __init__(
        self,
        store: CredentialStore,
        config: Optional[GeminiConfig] = None,
        blob_store: Optional[LocalBlobStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.config = config if config is not None else get_gemini_config()
        self.blob_store = blob_store if blob_store is not None else LocalBlobStore()
        self._http_client = http_client
        self._clients: Dict[str, GenerationClient] = {}

    @classmethod
    async def from_settings(
        cls,
        settings: Optional[Settings] = None,
        config: Optional[GeminiConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "GeminiStudio":
        """
        Build a ready-to-use studio from application settings.

        Configures package logging, resolves the key set (storage, legacy
        slot, environment, default key endpoint) and sets up blob storage.
        An unconfigured store is allowed; calls then fail with NoValidKeysError
        until a key is added.
        """
        settings = settings if settings is not None else get_settings()
        setup_logging("studio", settings.log_level, settings.json_logs)

        store = CredentialStore.from_settings(settings, http_client=http_client)
        await store.initialize()

        return cls(
            store,
            config=config,
            blob_store=LocalBlobStore(settings.blob_directory),
            http_client=http_client,
        )

    def _new_client(self, api_key: str) -> GenerationClient:
        return GenerationClient(
            api_key,
            config=self.config,
            blob_store=self.blob_store,
            http_client=self._http_client,
        )

    def client_for(self, api_key: str) -> GenerationClient:
        """
        GenerationClient for a key.

        Only keys currently in the store are cached; clients for keys that
        were removed from the store are dropped here.
        """
        known = set(self.store.keys)
        for stale in [key for key in self._clients if key not in known]:
            del self._clients[stale]

        client = self._clients.get(api_key)
        if client is None:
            client = self._new_client(api_key)
            if api_key in known:
                self._clients[api_key] = client
        return client

    async def run(
        self,
        description: str,
        operation: Callable[[GenerationClient], Awaitable[T]],
    ) -> T:
        """Run ``operation`` against the active key with rotation"""
        return await call_with_rotation(
            self.store,
            lambda api_key: operation(self.client_for(api_key)),
            max_attempts=self.config.rotation_max_attempts,
            base_delay=self.config.rotation_base_delay,
            description=description,
        )

    async def validate_api_key(self, api_key: str) -> bool:
        """Check a key before it is added; does not touch the store"""
        return await self._new_client(api_key).validate_api_key()

    async def generate_image(
        self, prompt: str, aspect_ratio: AspectRatioLike
    ) -> ImagePayload:
        return await self.run(
            "generate image", lambda client: client.generate_image(prompt, aspect_ratio)
        )

    async def edit_image(self, image: ImageInput, prompt: str) -> ImagePayload:
        return await self.run("edit image", lambda client: client.edit_image(image, prompt))

    async def change_aspect_ratio(
        self, main_image: ImageInput, aspect_reference_image: ImageInput
    ) -> ImagePayload:
        return await self.run(
            "change aspect ratio",
            lambda client: client.change_aspect_ratio(main_image, aspect_reference_image),
        )

    async def generate_product_photo(
        self, product_image: ImageInput, prompt: str, aspect_ratio: AspectRatioLike
    ) -> ImagePayload:
        return await self.run(
            "product photo",
            lambda client: client.generate_product_photo(product_image, prompt, aspect_ratio),
        )

    async def generate_product_photo_with_background(
        self,
        product_image: ImageInput,
        background_image: ImageInput,
        prompt: str,
        aspect_ratio: AspectRatioLike,
    ) -> ImagePayload:
        return await self.run(
            "product photo with background",
            lambda client: client.generate_product_photo_with_background(
                product_image, background_image, prompt, aspect_ratio
            ),
        )

    async def mix_images(
        self,
        model_image: ImageInput,
        product_image: ImageInput,
        prompt: str,
        aspect_ratio: AspectRatioLike,
        background_image: Optional[ImageInput] = None,
    ) -> ImagePayload:
        return await self.run(
            "mix images",
            lambda client: client.mix_images(
                model_image, product_image, prompt, aspect_ratio, background_image
            ),
        )

    async def generate_video_prompt(self, description: str) -> str:
        return await self.run(
            "video prompt", lambda client: client.generate_video_prompt(description)
        )

    async def generate_video_prompt_from_image(
        self, image: ImageInput, aspect_ratio: str
    ) -> str:
        return await self.run(
            "video prompt from image",
            lambda client: client.generate_video_prompt_from_image(image, aspect_ratio),
        )

    async def generate_affiliate_prompt(self, image: ImageInput) -> str:
        return await self.run(
            "affiliate prompt", lambda client: client.generate_affiliate_prompt(image)
        )

    async def generate_voice_over(self, script: str, voice_name: str) -> AudioClip:
        return await self.run(
            "voice over", lambda client: client.generate_voice_over(script, voice_name)
        )

    async def generate_text_to_speech(self, text: str) -> AudioClip:
        return await self.run(
            "text to speech", lambda client: client.generate_text_to_speech(text)
        )

    async def generate_video(
        self,
        request: VideoRequest,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> VideoResult:
        """
        Generate a video. A rotation restarts the whole job (submit, poll,
        download) with the next key.
        """
        return await self.run(
            "generate video",
            lambda client: client.generate_video(
                request, progress=progress, cancel_event=cancel_event
            ),
        )

    async def generate(
        self,
        request: Any,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Union[ImagePayload, AudioClip, VideoResult]:
        return await self.run(
            f"generate {getattr(request, 'kind', 'request')}",
            lambda client: client.generate(
                request, progress=progress, cancel_event=cancel_event
            ),
        )

    async def generate_variants(
        self, request: ImageRequest, count: int = 4
    ) -> List[Union[ImagePayload, BaseException]]:
        """
        Run ``count`` independent generations of the same image request.

        Variants race each other and share the key store; one failing does
        not cancel the rest. Failed variants come back as their exception.
        """
        results = await asyncio.gather(
            *(self.generate(request) for _ in range(count)),
            return_exceptions=True,
        )
        failed = sum(1 for result in results if isinstance(result, BaseException))
        if failed:
            logger.warning(f"{failed}/{count} variants failed")
        return list(results)
