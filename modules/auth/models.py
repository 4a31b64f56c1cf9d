"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, Field, model_validator


# Canonical provider ids reported by the identity backend
PASSWORD_PROVIDER = "password"
GOOGLE_PROVIDER = "google.com"
APPLE_PROVIDER = "apple.com"


class LoginType(str, Enum):
    """How the current identity signed in."""

    EMAIL = "email"
    GUEST = "guest"
    GOOGLE = "google"
    APPLE = "apple"


class AuthProvider(str, Enum):
    """Third-party providers supported by provider_sign_in."""

    GOOGLE = "google"
    APPLE = "apple"


class ConversionMethod(str, Enum):
    """Permanent sign-in methods an anonymous identity can be linked to."""

    EMAIL = "email"
    GOOGLE = "google"
    APPLE = "apple"

    @property
    def login_type(self) -> LoginType:
        return LoginType(self.value)


class Identity(BaseModel):
    """
    The signed-in user as the app sees it.

    Replaced wholesale on every identity-changed event, never mutated.
    """

    id: str = Field(..., description="Opaque user id from the identity backend")
    email: Optional[str] = Field(None, description="Email, if the account has one")
    login_type: LoginType = Field(default=LoginType.GUEST, description="Sign-in method")
    is_anonymous: bool = Field(default=False, description="Guest identity flag")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _anonymous_means_guest(self) -> "Identity":
        if self.is_anonymous and self.login_type != LoginType.GUEST:
            raise ValueError("anonymous identities must have login_type 'guest'")
        return self


class BackendUser(BaseModel):
    """
    User record as reported by the identity backend.

    provider_ids holds canonical provider ids (see *_PROVIDER constants),
    in the order the backend lists them.
    """

    uid: str
    email: Optional[str] = None
    is_anonymous: bool = False
    provider_ids: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class ProviderCredential(BaseModel):
    """
    Credential to exchange with (or link to) the identity backend.

    Either an email/password pair or a provider id token. Apple tokens
    carry the raw nonce whose hash was sent with the authorization request.
    """

    provider: str = Field(..., description="Canonical provider id")
    id_token: Optional[str] = Field(None, repr=False)
    access_token: Optional[str] = Field(None, repr=False)
    raw_nonce: Optional[str] = Field(None, repr=False)
    email: Optional[str] = None
    password: Optional[str] = Field(None, repr=False)

    model_config = {"frozen": True}

    @classmethod
    def email_password(cls, email: str, password: str) -> "ProviderCredential":
        return cls(provider=PASSWORD_PROVIDER, email=email, password=password)

    @property
    def is_password(self) -> bool:
        return self.provider == PASSWORD_PROVIDER


class OperationState(str, Enum):
    """Lifecycle of one authentication operation."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILURE = "failure"


class AuthOperation(BaseModel):
    """
    Record of a single in-flight or finished authentication operation.

    Each call to the auth service gets its own record, so concurrent
    operations never overwrite each other's state.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: str
    state: OperationState = OperationState.IDLE
    identity: Optional[Identity] = None
    error_code: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def start(self) -> None:
        self.state = OperationState.LOADING
        self.started_at = datetime.now(timezone.utc)

    def succeed(self, identity: Optional[Identity]) -> None:
        self.state = OperationState.SUCCESS
        self.identity = identity
        self.finished_at = datetime.now(timezone.utc)

    def fail(self, error_code: str) -> None:
        self.state = OperationState.FAILURE
        self.error_code = error_code
        self.finished_at = datetime.now(timezone.utc)

    @property
    def is_finished(self) -> bool:
        return self.state in (OperationState.SUCCESS, OperationState.FAILURE)
