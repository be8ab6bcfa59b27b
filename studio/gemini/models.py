"""
Generation request and result models.

Requests are immutable pydantic models forming a tagged union on ``kind``;
results are what the UI layer previews or downloads.
"""

import base64
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studio.gemini.audio import pcm_duration_seconds
from studio.gemini.config import (
    CharacterVoice,
    ImageAspectRatio,
    Resolution,
    VeoModel,
    VideoAspectRatio,
    VisualStyle,
)


class ImagePayload(BaseModel):
    """Binary image content as base64 text plus its mime type"""

    model_config = ConfigDict(frozen=True)

    data: str = Field(..., description="Base64 encoded image bytes")
    mime_type: str = Field(..., description="e.g. image/png")

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "ImagePayload":
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def data_url(self) -> str:
        """Inline URL usable for previews"""
        return f"data:{self.mime_type};base64,{self.data}"


# Inputs and outputs share one shape
ImageInput = ImagePayload


class _Request(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextToImageRequest(_Request):
    kind: Literal["text_to_image"] = "text_to_image"
    prompt: str
    aspect_ratio: ImageAspectRatio = ImageAspectRatio.SQUARE


class ImageToImageRequest(_Request):
    """
    Edit one source image. With an aspect ratio it becomes a product shot,
    with a background image the product is placed into that background.
    """

    kind: Literal["image_to_image"] = "image_to_image"
    image: ImageInput
    prompt: str
    aspect_ratio: Optional[ImageAspectRatio] = None
    background_image: Optional[ImageInput] = None


class ImageMixRequest(_Request):
    """Model image, product image and an optional background image"""

    kind: Literal["image_mix"] = "image_mix"
    images: Tuple[ImageInput, ...]
    prompt: str
    aspect_ratio: ImageAspectRatio = ImageAspectRatio.TALL

    @field_validator("images")
    @classmethod
    def _two_or_three_images(cls, value: Tuple[ImageInput, ...]) -> Tuple[ImageInput, ...]:
        if not 2 <= len(value) <= 3:
            raise ValueError("image mix needs two or three source images")
        return value


class VideoRequest(_Request):
    kind: Literal["video"] = "video"
    # Structured (JSON) prompts are sent as-is after serialization
    prompt: Union[str, dict, list]
    image: Optional[ImageInput] = None
    # None uses GeminiConfig.video_model
    model: Optional[VeoModel] = None
    aspect_ratio: VideoAspectRatio = VideoAspectRatio.WIDE
    enable_sound: bool = True
    resolution: Resolution = Resolution.HD
    character_voice: CharacterVoice = CharacterVoice.NONE
    visual_style: VisualStyle = VisualStyle.CINEMATIC


class SpeechRequest(_Request):
    kind: Literal["speech"] = "speech"
    text: str
    voice_name: str = "Kore"


GenerationRequest = Annotated[
    Union[
        TextToImageRequest,
        ImageToImageRequest,
        ImageMixRequest,
        VideoRequest,
        SpeechRequest,
    ],
    Field(discriminator="kind"),
]


class AudioClip(BaseModel):
    """Speech rendered into a WAV container"""

    data: bytes
    mime_type: str = "audio/wav"
    sample_rate: int = 24000

    @property
    def duration_seconds(self) -> float:
        return pcm_duration_seconds(self.data, sample_rate=self.sample_rate)


class VideoResult(BaseModel):
    """A generated video reachable through the local blob store"""

    url: str = Field(..., description="blob: reference, never the provider URI")
    mime_type: str = "video/mp4"
    model: str
