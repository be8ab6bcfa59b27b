"""
Studio Errors
Base exception classes
"""

from typing import Any, Dict, Optional


class StudioException(Exception):
    """Base exception for the studio package"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(StudioException):
    """Validation error (400)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(StudioException):
    """Resource not found error (404)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=404, details=details)


class RateLimitError(StudioException):
    """Rate limit exceeded error (429)"""

    def __init__(
        self, message: str = "Rate limit exceeded", details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, status_code=429, details=details)


class ExternalServiceError(StudioException):
    """External service error (502)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=502, details=details)
