"""
Creative Studio Core
Generation orchestration for the creative-AI studio: retries, polling and key rotation
"""

__version__ = "0.1.0"

from . import gemini
from . import utils

__all__ = ["gemini", "utils"]
