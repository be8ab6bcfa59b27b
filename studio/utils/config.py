"""
Studio Config
Environment configuration management using Pydantic
"""

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False
    service_name: str = "creative-studio"

    # Build/environment supplied default credential
    gemini_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("gemini_api_key", "api_key")
    )

    # Same-origin endpoint returning {"apiKey": "..."}
    default_key_endpoint: Optional[str] = None
    default_key_endpoint_timeout: float = 10.0

    # Durable credential storage
    credential_store_path: str = "~/.creative-studio/credentials.json"

    # Where downloaded artifacts are kept; None keeps them in memory
    blob_directory: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
