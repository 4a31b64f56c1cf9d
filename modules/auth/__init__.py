"""
Authentication module.

Signs users in through email/password, anonymous, Google and Apple flows,
links anonymous identities to permanent ones, and keeps the session store
in step with the identity backend.

Public API:
- IAuthService: Interface for auth operations
- AuthService: Orchestrator implementation
- SessionStore: Current identity cache fed by backend notifications
- Identity, LoginType, AuthProvider, ConversionMethod: Models
- Auth exceptions: InvalidCredentialsError, NotAnonymousError, etc.
"""

from .interfaces import IAuthService, IIdentityBackend, ICredentialProvider, IResettable
from .models import (
    AuthOperation,
    AuthProvider,
    BackendUser,
    ConversionMethod,
    Identity,
    LoginType,
    OperationState,
    ProviderCredential,
)
from .exceptions import (
    AuthError,
    MissingClientConfigurationError,
    UserCancelledError,
    MissingCredentialsError,
    NotAuthenticatedError,
    NotAnonymousError,
    InvalidCredentialsError,
    AccountExistsError,
    NetworkError,
    UnknownAuthError,
)
from .session import SessionStore, classify_login_type, identity_from_backend_user
from .service import AuthService

__all__ = [
    # Interfaces
    "IAuthService",
    "IIdentityBackend",
    "ICredentialProvider",
    "IResettable",
    # Models
    "AuthOperation",
    "AuthProvider",
    "BackendUser",
    "ConversionMethod",
    "Identity",
    "LoginType",
    "OperationState",
    "ProviderCredential",
    # Services
    "AuthService",
    "SessionStore",
    "classify_login_type",
    "identity_from_backend_user",
    # Exceptions
    "AuthError",
    "MissingClientConfigurationError",
    "UserCancelledError",
    "MissingCredentialsError",
    "NotAuthenticatedError",
    "NotAnonymousError",
    "InvalidCredentialsError",
    "AccountExistsError",
    "NetworkError",
    "UnknownAuthError",
]
