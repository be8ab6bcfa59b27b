"""
Gemini Generation Client
Typed request builders for image, video, speech and prompt-expansion calls.
Uses the google-genai SDK; every provider call goes through the backoff executor.
"""

import asyncio
import logging
from typing import Any, Callable, List, Optional, Tuple, Union

import httpx
from google import genai
from google.genai import types

from studio.gemini.audio import SAMPLE_RATE, pcm_to_wav
from studio.gemini.blobs import LocalBlobStore
from studio.gemini.config import GeminiConfig, ImageAspectRatio, get_gemini_config
from studio.gemini.exceptions import EmptyResultError, NoValidKeysError, VideoDownloadError
from studio.gemini.key_store import is_placeholder_key
from studio.gemini.models import (
    AudioClip,
    ImageInput,
    ImageMixRequest,
    ImagePayload,
    ImageToImageRequest,
    SpeechRequest,
    TextToImageRequest,
    VideoRequest,
    VideoResult,
)
from studio.gemini.poller import OperationPoller, ProgressCallback
from studio.gemini.prompts import (
    AFFILIATE_SYSTEM_INSTRUCTION,
    ASPECT_RATIO_EXPANSION_PROMPT,
    IMAGE_VIDEO_PROMPT_SYSTEM_INSTRUCTION,
    TTS_FRIENDLY_PREFIX,
    VIDEO_PROMPT_SYSTEM_INSTRUCTION,
    build_video_prompt,
    image_video_prompt_request,
    mix_prompt,
    product_background_prompt,
    product_photo_prompt,
    video_prompt_request,
)
from studio.gemini.retry import with_retry

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT_SECONDS = 300.0
NO_IMAGE_MESSAGE = "No image was generated by the model."
NO_AUDIO_MESSAGE = "TTS generation failed, no audio data was returned from the API."

AspectRatioLike = Union[ImageAspectRatio, str]


def _ratio(value: AspectRatioLike) -> str:
    return value.value if isinstance(value, ImageAspectRatio) else str(value)


def _image_part(image: ImageInput) -> types.Part:
    return types.Part.from_bytes(data=image.to_bytes(), mime_type=image.mime_type)


def _response_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _inline_payload(inline: Any, default_mime: str) -> ImagePayload:
    mime_type = getattr(inline, "mime_type", None) or default_mime
    if isinstance(inline.data, str):
        return ImagePayload(data=inline.data, mime_type=mime_type)
    return ImagePayload.from_bytes(inline.data, mime_type)


def extract_image(response: Any, empty_message: str = NO_IMAGE_MESSAGE) -> ImagePayload:
    """First inline image of a generate_content response"""
    for part in _response_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return _inline_payload(inline, "image/png")
    raise EmptyResultError(empty_message)


def extract_text(response: Any) -> str:
    text = getattr(response, "text", None)
    if not text:
        raise EmptyResultError("The model returned no text.")
    return text.strip()


class GenerationClient:
    """
    Generation calls bound to a single API key.

    Features:
    - One method per studio tool, each returning a domain result
    - Backoff on rate limits around every provider call
    - Video jobs submitted, polled and downloaded into the local blob store
    """

    def __init__(
        self,
        api_key: str,
        config: Optional[GeminiConfig] = None,
        blob_store: Optional[LocalBlobStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Key used for every call made by this client
            config: Models and retry/poll tuning (defaults to environment config)
            blob_store: Where downloaded videos are registered
            http_client: Optional shared httpx client for video downloads
        """
        if is_placeholder_key(api_key):
            raise NoValidKeysError()

        self.api_key = api_key
        self.config = config if config is not None else get_gemini_config()
        self.blob_store = blob_store if blob_store is not None else LocalBlobStore()
        self._http_client = http_client
        self._client = genai.Client(api_key=api_key)

    @property
    def retry_options(self) -> dict:
        return {
            "max_retries": self.config.retry_max_attempts,
            "initial_delay": self.config.retry_initial_delay,
            "max_jitter": self.config.retry_max_jitter,
        }

    async def _call(self, description: str, func: Callable[..., Any], **kwargs) -> Any:
        """Run a blocking SDK call in a thread, wrapped by the backoff executor"""
        return await with_retry(
            lambda: asyncio.to_thread(func, **kwargs),
            description=description,
            **self.retry_options,
        )

    async def _generate_image_content(
        self, description: str, parts: List[types.Part], empty_message: str = NO_IMAGE_MESSAGE
    ) -> ImagePayload:
        response = await self._call(
            description,
            self._client.models.generate_content,
            model=self.config.image_edit_model,
            contents=parts,
            config=types.GenerateContentConfig(response_modalities=[types.Modality.IMAGE]),
        )
        return extract_image(response, empty_message)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    async def validate_api_key(self) -> bool:
        """
        Check the key with a lightweight model listing call.

        Returns:
            bool: True if the backend accepted the key
        """
        try:
            await self._call("validate api key", self._client.models.list)
            return True
        except Exception as e:
            logger.error(f"API Key validation failed after retries: {e}")
            return False

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def generate_image(
        self, prompt: str, aspect_ratio: AspectRatioLike = ImageAspectRatio.SQUARE
    ) -> ImagePayload:
        """Text-to-image with Imagen; always returns a PNG"""
        response = await self._call(
            "generate image",
            self._client.models.generate_images,
            model=self.config.imagen_model,
            prompt=prompt,
            config=types.GenerateImagesConfig(
                number_of_images=1,
                output_mime_type="image/png",
                aspect_ratio=_ratio(aspect_ratio),
            ),
        )

        generated = getattr(response, "generated_images", None) or []
        image = getattr(generated[0], "image", None) if generated else None
        image_bytes = getattr(image, "image_bytes", None)
        if not image_bytes:
            raise EmptyResultError(NO_IMAGE_MESSAGE)
        return ImagePayload.from_bytes(image_bytes, "image/png")

    async def edit_image(self, image: ImageInput, prompt: str) -> ImagePayload:
        return await self._generate_image_content(
            "edit image", [_image_part(image), types.Part.from_text(text=prompt)]
        )

    async def change_aspect_ratio(
        self, main_image: ImageInput, aspect_reference_image: ImageInput
    ) -> ImagePayload:
        """Outpaint ``main_image`` onto the canvas shape of the reference image"""
        return await self._generate_image_content(
            "change aspect ratio",
            [
                _image_part(main_image),
                _image_part(aspect_reference_image),
                types.Part.from_text(text=ASPECT_RATIO_EXPANSION_PROMPT),
            ],
        )

    async def generate_product_photo(
        self, product_image: ImageInput, prompt: str, aspect_ratio: AspectRatioLike
    ) -> ImagePayload:
        return await self._generate_image_content(
            "product photo",
            [
                _image_part(product_image),
                types.Part.from_text(text=product_photo_prompt(prompt, _ratio(aspect_ratio))),
            ],
        )

    async def generate_product_photo_with_background(
        self,
        product_image: ImageInput,
        background_image: ImageInput,
        prompt: str,
        aspect_ratio: AspectRatioLike,
    ) -> ImagePayload:
        return await self._generate_image_content(
            "product photo with background",
            [
                types.Part.from_text(
                    text=product_background_prompt(prompt, _ratio(aspect_ratio))
                ),
                _image_part(product_image),
                _image_part(background_image),
            ],
            empty_message="Model did not generate an image.",
        )

    async def mix_images(
        self,
        model_image: ImageInput,
        product_image: ImageInput,
        prompt: str,
        aspect_ratio: AspectRatioLike,
        background_image: Optional[ImageInput] = None,
    ) -> ImagePayload:
        """Dress the model in the product, optionally inside a background"""
        images = [model_image, product_image]
        if background_image is not None:
            images.append(background_image)

        text = mix_prompt(prompt, _ratio(aspect_ratio), with_background=background_image is not None)
        return await self._generate_image_content(
            "mix images",
            [types.Part.from_text(text=text)] + [_image_part(image) for image in images],
            empty_message="Model did not generate an image.",
        )

    # ------------------------------------------------------------------
    # Prompt expansion
    # ------------------------------------------------------------------

    async def _generate_text(
        self,
        description: str,
        contents: Any,
        system_instruction: str,
        json_output: bool = False,
    ) -> str:
        config_kwargs = {"system_instruction": system_instruction}
        if json_output:
            config_kwargs["response_mime_type"] = "application/json"

        response = await self._call(
            description,
            self._client.models.generate_content,
            model=self.config.text_model,
            contents=contents,
            config=types.GenerateContentConfig(**config_kwargs),
        )
        return extract_text(response)

    async def generate_video_prompt(self, description: str) -> str:
        """Expand a short idea into a multi-scene JSON video prompt"""
        return await self._generate_text(
            "video prompt",
            video_prompt_request(description),
            VIDEO_PROMPT_SYSTEM_INSTRUCTION,
            json_output=True,
        )

    async def generate_video_prompt_from_image(
        self, image: ImageInput, aspect_ratio: str
    ) -> str:
        return await self._generate_text(
            "video prompt from image",
            [_image_part(image), types.Part.from_text(text=image_video_prompt_request(aspect_ratio))],
            IMAGE_VIDEO_PROMPT_SYSTEM_INSTRUCTION,
            json_output=True,
        )

    async def generate_affiliate_prompt(self, image: ImageInput) -> str:
        return await self._generate_text(
            "affiliate prompt",
            [
                _image_part(image),
                types.Part.from_text(
                    text="Analyze this image and generate a video prompt based on the system instructions."
                ),
            ],
            AFFILIATE_SYSTEM_INSTRUCTION,
        )

    # ------------------------------------------------------------------
    # Speech
    # ------------------------------------------------------------------

    async def generate_voice_over(self, script: str, voice_name: str) -> AudioClip:
        """
        Speak ``script`` with a prebuilt voice.

        The API returns raw 24kHz mono 16-bit PCM, wrapped here into WAV.
        """
        response = await self._call(
            "voice over",
            self._client.models.generate_content,
            model=self.config.tts_model,
            contents=[types.Part.from_text(text=script)],
            config=types.GenerateContentConfig(
                response_modalities=[types.Modality.AUDIO],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name)
                    )
                ),
            ),
        )

        parts = _response_parts(response)
        inline = getattr(parts[0], "inline_data", None) if parts else None
        if inline is None or not getattr(inline, "data", None):
            raise EmptyResultError(NO_AUDIO_MESSAGE)

        pcm = _inline_payload(inline, "audio/pcm").to_bytes()
        return AudioClip(data=pcm_to_wav(pcm), sample_rate=SAMPLE_RATE)

    async def generate_text_to_speech(self, text: str) -> AudioClip:
        return await self.generate_voice_over(f"{TTS_FRIENDLY_PREFIX}{text}", "Kore")

    # ------------------------------------------------------------------
    # Video
    # ------------------------------------------------------------------

    async def generate_video(
        self,
        request: VideoRequest,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> VideoResult:
        """
        Generate a video and return a local blob reference to it.

        Args:
            request: Prompt, optional start image and video options
            progress: Receives status lines while the job runs
            cancel_event: Set it to stop polling (in-flight calls still finish)

        Returns:
            VideoResult: ``blob:`` URL; the provider URI never leaves this method
        """
        model = request.model.value if request.model is not None else self.config.video_model
        submit_kwargs = {
            "model": model,
            "prompt": build_video_prompt(request),
            "config": types.GenerateVideosConfig(number_of_videos=1),
        }
        if request.image is not None:
            submit_kwargs["image"] = types.Image(
                image_bytes=request.image.to_bytes(), mime_type=request.image.mime_type
            )

        logger.info(f"Generating video with model={model}")

        poller = OperationPoller(
            submit=lambda: asyncio.to_thread(self._client.models.generate_videos, **submit_kwargs),
            refresh=lambda operation: asyncio.to_thread(self._client.operations.get, operation),
            interval=self.config.poll_interval_seconds,
            retry_options=self.retry_options,
            progress=progress,
            cancel_event=cancel_event,
        )
        uri = await poller.run()

        data, mime_type = await self._download_video(uri)
        url = self.blob_store.create_object_url(data, mime_type)
        return VideoResult(url=url, mime_type=mime_type, model=model)

    async def _download_video(self, uri: str) -> Tuple[bytes, str]:
        """Fetch a finished video; the URI needs the key as a query parameter"""
        separator = "&" if "?" in uri else "?"
        url = f"{uri}{separator}key={self.api_key}"

        response = None
        transport_error = None
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(
                    timeout=DOWNLOAD_TIMEOUT_SECONDS, follow_redirects=True
                ) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            transport_error = type(e).__name__

        # Raised outside the except block: the httpx error holds the keyed URL
        if transport_error is not None:
            logger.error(f"Failed to download generated video: {transport_error}")
            raise VideoDownloadError(None, f"network error ({transport_error})")

        if not response.is_success:
            logger.error(f"Failed to download generated video: {response.status_code}")
            raise VideoDownloadError(response.status_code, response.text)

        mime_type = response.headers.get("content-type", "video/mp4").split(";")[0].strip()
        return response.content, mime_type or "video/mp4"

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def generate(
        self,
        request: Any,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Union[ImagePayload, AudioClip, VideoResult]:
        """Run any GenerationRequest variant; ``progress`` and ``cancel_event`` apply to video only"""
        if isinstance(request, TextToImageRequest):
            return await self.generate_image(request.prompt, request.aspect_ratio)

        if isinstance(request, ImageToImageRequest):
            if request.background_image is not None:
                return await self.generate_product_photo_with_background(
                    request.image,
                    request.background_image,
                    request.prompt,
                    request.aspect_ratio or ImageAspectRatio.SQUARE,
                )
            if request.aspect_ratio is not None:
                return await self.generate_product_photo(
                    request.image, request.prompt, request.aspect_ratio
                )
            return await self.edit_image(request.image, request.prompt)

        if isinstance(request, ImageMixRequest):
            background = request.images[2] if len(request.images) == 3 else None
            return await self.mix_images(
                request.images[0],
                request.images[1],
                request.prompt,
                request.aspect_ratio,
                background_image=background,
            )

        if isinstance(request, VideoRequest):
            return await self.generate_video(request, progress=progress, cancel_event=cancel_event)

        if isinstance(request, SpeechRequest):
            return await self.generate_voice_over(request.text, request.voice_name)

        raise TypeError(f"Unsupported generation request: {type(request).__name__}")
