"""
Studio Utilities
Configuration, logging and base errors shared by the studio modules
"""

from .config import Settings, get_settings
from .errors import (
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
    StudioException,
    ValidationError,
)
from .logger import get_logger
from .logging_config import setup_logging

__all__ = [
    # Config
    "get_settings",
    "Settings",
    # Logging
    "get_logger",
    "setup_logging",
    # Errors
    "StudioException",
    "ValidationError",
    "NotFoundError",
    "RateLimitError",
    "ExternalServiceError",
]
