"""
Base exception classes for ColdWater.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling and a single title/message mapping
for every failure that reaches the UI.
"""

from typing import Optional, Any


class ColdWaterError(Exception):
    """
    Base exception for all ColdWater errors.

    All custom exceptions should inherit from this class.
    """

    # Alert title used when the error reaches a view-model unhandled
    title: str = "Error"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for logging and display."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ColdWaterError):
    """Input validation failed."""

    pass


class AuthenticationError(ColdWaterError):
    """Authentication failed (invalid, missing or rejected credentials)."""

    pass


class AuthorizationError(ColdWaterError):
    """The current session is not allowed to perform the operation."""

    pass


class StorageError(ColdWaterError):
    """Local persistence failed."""

    pass


class ExternalServiceError(ColdWaterError):
    """Error communicating with an external service."""

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
