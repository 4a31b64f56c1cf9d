"""
Authentication module exceptions.

Credential adapters and the identity backend raise these; the auth service
passes them to its caller unchanged, and view-models turn them into
title/message alerts.
"""

from typing import Optional

from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ExternalServiceError,
)


class AuthError(AuthenticationError):
    """Base exception for authentication failures."""

    title = "Authentication Failed"


class MissingClientConfigurationError(AuthError):
    """Raised when a sign-in provider has no client configuration."""

    title = "Sign-In Unavailable"

    def __init__(self, provider: str):
        super().__init__(
            f"{provider} sign-in is not configured",
            code="MISSING_CLIENT_CONFIGURATION",
            details={"provider": provider},
        )


class UserCancelledError(AuthError):
    """Raised when the user dismisses a provider's sign-in dialog."""

    title = "Sign-In Cancelled"

    def __init__(self, provider: str):
        super().__init__(
            f"{provider} sign-in was cancelled",
            code="USER_CANCELLED",
            details={"provider": provider},
        )


class MissingCredentialsError(AuthError):
    """Raised when a provider flow completes without a usable token."""

    def __init__(self, provider: str, reason: Optional[str] = None):
        message = f"{provider} sign-in returned no usable credentials"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message,
            code="MISSING_CREDENTIALS",
            details={"provider": provider},
        )


class NotAuthenticatedError(AuthorizationError):
    """Raised when an operation requires a signed-in identity."""

    title = "Not Signed In"

    def __init__(self, message: str = "No user is signed in"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class NotAnonymousError(AuthorizationError):
    """Raised when converting an identity that is already permanent."""

    def __init__(self, message: str = "User is not anonymous"):
        super().__init__(message, code="NOT_ANONYMOUS")


class InvalidCredentialsError(AuthError):
    """Raised when the identity backend rejects the supplied credentials."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class AccountExistsError(AuthError):
    """Raised when signing up or linking with an email already in use."""

    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message, code="ACCOUNT_EXISTS")


class NetworkError(ExternalServiceError):
    """Raised when the identity backend cannot be reached."""

    title = "Connection Problem"

    def __init__(self, message: str = "Unable to reach the sign-in service"):
        super().__init__(message, service="identity", code="NETWORK_ERROR")


class UnknownAuthError(AuthError):
    """Raised when the backend fails without a classifiable reason,
    or reports success but returns no usable result."""

    def __init__(self, message: str = "Unknown error occurred"):
        super().__init__(message, code="UNKNOWN_AUTH_ERROR")
