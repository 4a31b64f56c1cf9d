"""
Authentication service implementation.

Drives the credential provider adapters and the identity backend. Results
are returned to the caller; the session store learns about the new
identity only through the backend's change notification.
"""

import logging
from typing import Iterable, Optional

from .exceptions import (
    InvalidCredentialsError,
    MissingClientConfigurationError,
    NotAnonymousError,
    NotAuthenticatedError,
    UnknownAuthError,
)
from .interfaces import (
    IAuthService,
    ICredentialProvider,
    IIdentityBackend,
    IResettable,
    Unsubscribe,
)
from .models import (
    AuthOperation,
    AuthProvider,
    BackendUser,
    ConversionMethod,
    Identity,
    LoginType,
    ProviderCredential,
)
from .operations import OperationListener, OperationTracker
from .session import SessionStore

logger = logging.getLogger(__name__)


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    One method per sign-in method. Each returns the new Identity or raises
    one of the auth module's typed exceptions; nothing is retried.
    """

    def __init__(
        self,
        backend: IIdentityBackend,
        session: SessionStore,
        google: Optional[ICredentialProvider] = None,
        apple: Optional[ICredentialProvider] = None,
        resettables: Iterable[IResettable] = (),
    ):
        self._backend = backend
        self._session = session
        self._providers: dict[AuthProvider, Optional[ICredentialProvider]] = {
            AuthProvider.GOOGLE: google,
            AuthProvider.APPLE: apple,
        }
        self._resettables: list[IResettable] = list(resettables)
        self._tracker = OperationTracker()
        self._tracker.add_listener(self._sync_session_loading)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def session(self) -> SessionStore:
        return self._session

    @property
    def is_loading(self) -> bool:
        return self._tracker.is_loading

    @property
    def operations(self) -> list[AuthOperation]:
        """Operations currently in flight."""
        return self._tracker.in_flight

    def add_operation_listener(self, listener: OperationListener) -> Unsubscribe:
        return self._tracker.add_listener(listener)

    def add_resettable(self, resettable: IResettable) -> None:
        """Register local state to wipe on sign-out and account deletion."""
        self._resettables.append(resettable)

    # -------------------------------------------------------------------------
    # Sign-in
    # -------------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Identity:
        """Sign in with an existing email/password account."""
        async with self._tracker.track("login") as op:
            user = await self._backend.sign_in_with_password(email, password)
            identity = self._identity_from_result(user, LoginType.EMAIL)
            op.succeed(identity)
            return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        """Create a permanent email/password account and sign in to it."""
        async with self._tracker.track("sign_up") as op:
            user = await self._backend.sign_up(email, password)
            identity = self._identity_from_result(user, LoginType.EMAIL)
            op.succeed(identity)
            return identity

    async def sign_in_anonymously(self) -> Identity:
        """Create a disposable guest identity."""
        async with self._tracker.track("sign_in_anonymously") as op:
            user = await self._backend.sign_in_anonymously()
            identity = self._identity_from_result(user, LoginType.GUEST, is_anonymous=True)
            op.succeed(identity)
            return identity

    async def provider_sign_in(self, provider: AuthProvider) -> Identity:
        """
        Sign in with a third-party provider.

        Runs the provider's flow for a token, then exchanges the token with
        the identity backend.
        """
        provider = AuthProvider(provider)
        async with self._tracker.track(f"{provider.value}_sign_in") as op:
            credential = await self._adapter(provider).obtain_credential()
            user = await self._backend.sign_in_with_credential(credential)
            identity = self._identity_from_result(user, LoginType(provider.value))
            op.succeed(identity)
            return identity

    # -------------------------------------------------------------------------
    # Linking
    # -------------------------------------------------------------------------

    async def convert_anonymous_to_permanent(
        self,
        method: ConversionMethod,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Identity:
        """
        Attach a permanent credential to the current anonymous identity.

        The identity keeps its id, so data stored under it survives.

        Raises:
            NotAnonymousError: no user is signed in, or the user is permanent
            InvalidCredentialsError: email conversion without email/password
        """
        method = ConversionMethod(method)
        async with self._tracker.track(f"convert_{method.value}") as op:
            current = self._backend.current_user
            if current is None or not current.is_anonymous:
                raise NotAnonymousError()

            if method == ConversionMethod.EMAIL:
                if not email or not password:
                    raise InvalidCredentialsError("Email and password are required")
                credential = ProviderCredential.email_password(email, password)
            else:
                credential = await self._adapter(AuthProvider(method.value)).obtain_credential()

            user = await self._backend.link_credential(credential)
            identity = self._identity_from_result(user, method.login_type)

            if identity.id != current.uid:
                raise UnknownAuthError(
                    f"Linking replaced user {current.uid} with {identity.id}"
                )

            op.succeed(identity)
            return identity

    # -------------------------------------------------------------------------
    # Sign-out and deletion
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        """End the backend session, then wipe local state."""
        async with self._tracker.track("sign_out"):
            await self._backend.sign_out()
            self._reset_local_state()

    async def delete_account(self) -> None:
        """
        Delete the signed-in identity (anonymous included), then wipe local state.

        Raises:
            NotAuthenticatedError: no user is signed in
        """
        async with self._tracker.track("delete_account"):
            if self._backend.current_user is None:
                raise NotAuthenticatedError()
            await self._backend.delete_current_user()
            self._reset_local_state()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _adapter(self, provider: AuthProvider) -> ICredentialProvider:
        adapter = self._providers.get(provider)
        if adapter is None:
            raise MissingClientConfigurationError(provider.value.capitalize())
        return adapter

    @staticmethod
    def _identity_from_result(
        user: Optional[BackendUser],
        login_type: LoginType,
        is_anonymous: bool = False,
    ) -> Identity:
        if user is None:
            raise UnknownAuthError("Identity backend returned no user")
        return Identity(
            id=user.uid,
            email=user.email,
            login_type=login_type,
            is_anonymous=is_anonymous,
        )

    def _reset_local_state(self) -> None:
        for resettable in self._resettables:
            resettable.reset()
        logger.debug(f"Reset {len(self._resettables)} local state holder(s)")

    def _sync_session_loading(self, op: AuthOperation) -> None:
        self._session.set_loading(self._tracker.is_loading)
