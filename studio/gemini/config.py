"""
Gemini Configuration Module
Model identifiers, closed vocabularies and orchestration tuning for generation calls.
"""

import os
from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field


class ImageModel(str, Enum):
    """Image generation models"""

    FLASH_IMAGE = "gemini-2.5-flash-image"  # Editing, mixing, product shots
    IMAGEN = "imagen-4.0-generate-001"  # Text-to-image


class VeoModel(str, Enum):
    """Video generation models"""

    VEO3_FAST_PREVIEW = "veo-3.0-fast-generate-preview"
    VEO2 = "veo-2.0-generate-001"
    VEO3_FAST = "veo-3.0-fast-generate-001"
    VEO3 = "veo-3.0-generate-001"
    VEO3_FAST_ALIAS = "veo-3.0-fast"
    VEO3_ULTRA = "veo-3.0-ultra"


class ImageAspectRatio(str, Enum):
    WIDE = "16:9"
    TALL = "9:16"
    SQUARE = "1:1"
    LANDSCAPE = "4:3"
    PORTRAIT = "3:4"


class VideoAspectRatio(str, Enum):
    WIDE = "16:9"
    TALL = "9:16"
    SQUARE = "1:1"


class Resolution(str, Enum):
    FULL_HD = "1080p"
    HD = "720p"


class VisualStyle(str, Enum):
    CINEMATIC = "Cinematic"
    REALISTIC = "Realistic"
    ANIME = "Anime"
    PIXAR_3D = "Pixar3D"
    CYBERPUNK = "Cyberpunk"
    RETRO_80S = "Retro 80's"


class CharacterVoice(str, Enum):
    NONE = "none"
    ENGLISH = "english"
    BAHASA_INDONESIA = "bahasa-indonesia"


class GeminiConfig(BaseModel):
    """
    Central generation configuration.
    Every value can be overridden via environment variables.
    """

    model_config = {"protected_namespaces": ()}

    # Models
    text_model: str = Field(
        default="gemini-2.5-flash", description="Model for prompt expansion"
    )
    image_edit_model: str = Field(
        default=ImageModel.FLASH_IMAGE.value,
        description="Model for image editing and mixing",
    )
    imagen_model: str = Field(
        default=ImageModel.IMAGEN.value, description="Model for text-to-image"
    )
    tts_model: str = Field(
        default="gemini-2.5-flash-preview-tts", description="Model for speech"
    )
    video_model: str = Field(
        default=VeoModel.VEO3_FAST_PREVIEW.value, description="Default Veo model"
    )

    # Backoff executor
    retry_max_attempts: int = Field(default=5, ge=1)
    retry_initial_delay: float = Field(default=1.0, ge=0.0)
    retry_max_jitter: float = Field(default=0.5, ge=0.0)

    # Long-running operations
    poll_interval_seconds: float = Field(default=10.0, ge=0.0)

    # Key rotation
    rotation_max_attempts: int = Field(default=3, ge=1)
    rotation_base_delay: float = Field(default=1.0, ge=0.0)

    @classmethod
    def from_env(cls) -> "GeminiConfig":
        """Load configuration from environment variables"""
        return cls(
            text_model=os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash"),
            image_edit_model=os.getenv(
                "GEMINI_IMAGE_EDIT_MODEL", ImageModel.FLASH_IMAGE.value
            ),
            imagen_model=os.getenv("GEMINI_IMAGEN_MODEL", ImageModel.IMAGEN.value),
            tts_model=os.getenv("GEMINI_TTS_MODEL", "gemini-2.5-flash-preview-tts"),
            video_model=os.getenv("GEMINI_VIDEO_MODEL", VeoModel.VEO3_FAST_PREVIEW.value),
            retry_max_attempts=int(os.getenv("GEMINI_RETRY_MAX_ATTEMPTS", "5")),
            retry_initial_delay=float(os.getenv("GEMINI_RETRY_INITIAL_DELAY", "1.0")),
            retry_max_jitter=float(os.getenv("GEMINI_RETRY_MAX_JITTER", "0.5")),
            poll_interval_seconds=float(os.getenv("GEMINI_POLL_INTERVAL_SECONDS", "10")),
            rotation_max_attempts=int(os.getenv("GEMINI_ROTATION_MAX_ATTEMPTS", "3")),
            rotation_base_delay=float(os.getenv("GEMINI_ROTATION_BASE_DELAY", "1.0")),
        )


@lru_cache()
def get_gemini_config() -> GeminiConfig:
    """
    Get cached Gemini configuration instance.
    Configuration is loaded once and cached for performance.
    """
    return GeminiConfig.from_env()
