"""
Credential provider adapters.

Each adapter runs one third-party sign-in flow and returns a
ProviderCredential for the identity backend. Flows that block (the Google
consent flow waits for a browser redirect) run in a worker thread; the
Apple flow is driven by an awaitable presenter supplied by the UI layer.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

import jwt
from google_auth_oauthlib.flow import InstalledAppFlow
from oauthlib.oauth2.rfc6749.errors import AccessDeniedError

from .exceptions import (
    MissingClientConfigurationError,
    MissingCredentialsError,
    UserCancelledError,
)
from .models import APPLE_PROVIDER, GOOGLE_PROVIDER, ProviderCredential
from .nonce import NonceChallenge

logger = logging.getLogger(__name__)


class GoogleCredentialProvider:
    """
    Google Sign-In through the installed-app OAuth flow.

    Opens the consent page in the user's browser and waits on a local
    redirect server for the result.
    """

    provider = GOOGLE_PROVIDER

    def __init__(
        self,
        client_secrets_path: Optional[str],
        scopes: list[str],
        port: int = 0,
    ):
        self._client_secrets_path = client_secrets_path
        self._scopes = scopes
        self._port = port

    async def obtain_credential(self) -> ProviderCredential:
        if not self._client_secrets_path or not Path(self._client_secrets_path).exists():
            logger.warning(f"Google client secrets not found: {self._client_secrets_path}")
            raise MissingClientConfigurationError("Google")

        logger.debug("Starting Google Sign-In flow")
        try:
            credentials = await asyncio.to_thread(self._run_flow)
        except AccessDeniedError as e:
            raise UserCancelledError("Google") from e
        except ValueError as e:
            # from_client_secrets_file rejects files that are not OAuth client configs
            raise MissingClientConfigurationError("Google") from e

        id_token = getattr(credentials, "id_token", None)
        if not id_token:
            raise MissingCredentialsError("Google", "no id token in response")

        logger.debug("Google Sign-In flow completed")
        return ProviderCredential(
            provider=GOOGLE_PROVIDER,
            id_token=id_token,
            access_token=credentials.token,
        )

    def _run_flow(self):
        flow = InstalledAppFlow.from_client_secrets_file(
            self._client_secrets_path,
            self._scopes,
        )
        return flow.run_local_server(port=self._port)


@dataclass(frozen=True)
class AppleAuthorizationRequest:
    """What the presenter shows: requested scopes and the hashed nonce."""

    nonce: str
    scopes: tuple[str, ...] = ("name", "email")
    client_id: Optional[str] = None


@dataclass(frozen=True)
class AppleAuthorization:
    """What the presenter returns once the user approves."""

    identity_token: Optional[str]
    authorization_code: Optional[str] = None
    full_name: Optional[str] = None


ApplePresenter = Callable[[AppleAuthorizationRequest], Awaitable[AppleAuthorization]]


class AppleCredentialProvider:
    """
    Sign in with Apple.

    The presenter performs the system authorization dialog and is awaited
    directly; it raises UserCancelledError when the user backs out.
    """

    provider = APPLE_PROVIDER

    def __init__(
        self,
        presenter: Optional[ApplePresenter],
        client_id: Optional[str] = None,
        nonce_factory: Callable[[], NonceChallenge] = NonceChallenge.create,
    ):
        self._presenter = presenter
        self._client_id = client_id
        self._nonce_factory = nonce_factory

    async def obtain_credential(self) -> ProviderCredential:
        if self._presenter is None:
            raise MissingClientConfigurationError("Apple")

        challenge = self._nonce_factory()
        request = AppleAuthorizationRequest(nonce=challenge.hashed, client_id=self._client_id)

        logger.debug("Starting Apple Sign-In flow")
        authorization = await self._presenter(request)

        token = authorization.identity_token
        if not token:
            raise MissingCredentialsError("Apple", "no identity token in response")

        # Signature and audience are verified by the identity backend
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as e:
            raise MissingCredentialsError("Apple", "identity token is malformed") from e

        token_nonce = claims.get("nonce")
        if token_nonce is not None and not challenge.matches(token_nonce):
            raise MissingCredentialsError("Apple", "identity token nonce does not match request")

        logger.debug("Apple Sign-In flow completed")
        return ProviderCredential(
            provider=APPLE_PROVIDER,
            id_token=token,
            raw_nonce=challenge.raw,
            email=claims.get("email"),
        )
