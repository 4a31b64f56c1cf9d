"""
Authentication module interfaces.

Other modules should depend on IAuthService, not the concrete implementation.
The identity backend and the credential providers sit behind protocols too,
so the service can be driven by in-memory fakes in tests.
"""

from typing import Callable, Optional, Protocol, runtime_checkable

from .models import (
    AuthProvider,
    BackendUser,
    ConversionMethod,
    Identity,
    ProviderCredential,
)


StateListener = Callable[[Optional[BackendUser]], None]
Unsubscribe = Callable[[], None]


@runtime_checkable
class IIdentityBackend(Protocol):
    """
    Contract for the external authentication service of record.

    Mutating calls return the resulting user record, or None when the
    backend reported success but returned nothing usable. Failures are
    raised as the auth module's typed exceptions.

    Every successful change must also be announced to the listeners
    registered with add_state_listener (None once signed out).
    """

    @property
    def current_user(self) -> Optional[BackendUser]:
        """The signed-in user as last known to the backend."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> Optional[BackendUser]:
        ...

    async def sign_up(self, email: str, password: str) -> Optional[BackendUser]:
        ...

    async def sign_in_anonymously(self) -> Optional[BackendUser]:
        ...

    async def sign_in_with_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        """Exchange a provider token for a backend session."""
        ...

    async def link_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        """Attach a permanent credential to the current user, keeping its id."""
        ...

    async def sign_out(self) -> None:
        ...

    async def delete_current_user(self) -> None:
        ...

    def add_state_listener(self, listener: StateListener) -> Unsubscribe:
        """Register a listener for identity changes; returns its remover."""
        ...


@runtime_checkable
class ICredentialProvider(Protocol):
    """A third-party sign-in flow producing a provider credential."""

    provider: str

    async def obtain_credential(self) -> ProviderCredential:
        """
        Run the provider's sign-in flow.

        Raises:
            MissingClientConfigurationError: provider is not configured
            UserCancelledError: the user dismissed the flow
            MissingCredentialsError: the flow returned no usable token
        """
        ...


@runtime_checkable
class IResettable(Protocol):
    """Local state that must be wiped when the identity goes away."""

    def reset(self) -> None:
        ...


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to view-models. Implementations must provide all these methods.
    """

    @property
    def is_loading(self) -> bool:
        """True while any operation is in flight."""
        ...

    async def login(self, email: str, password: str) -> Identity:
        ...

    async def sign_up(self, email: str, password: str) -> Identity:
        ...

    async def sign_in_anonymously(self) -> Identity:
        ...

    async def provider_sign_in(self, provider: AuthProvider) -> Identity:
        ...

    async def convert_anonymous_to_permanent(
        self,
        method: ConversionMethod,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Identity:
        ...

    async def sign_out(self) -> None:
        ...

    async def delete_account(self) -> None:
        ...
