"""
Supabase Auth identity backend.

Wraps the synchronous supabase-py auth client. Every call runs in a worker
thread; supabase's auth-state callbacks fire on that thread and are
forwarded to listeners as BackendUser records. Native errors are
classified into the auth module's exceptions here and nowhere else.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client
from supabase_auth.errors import (
    AuthError as SupabaseAuthError,
    AuthRetryableError,
)

from shared.config import Settings
from shared.exceptions import ColdWaterError

from .exceptions import (
    AccountExistsError,
    InvalidCredentialsError,
    NetworkError,
    NotAuthenticatedError,
    UnknownAuthError,
)
from .interfaces import StateListener, Unsubscribe
from .models import (
    APPLE_PROVIDER,
    GOOGLE_PROVIDER,
    PASSWORD_PROVIDER,
    BackendUser,
    ProviderCredential,
)

logger = logging.getLogger(__name__)

# Supabase provider names <-> canonical provider ids
_CANONICAL_PROVIDERS = {
    "email": PASSWORD_PROVIDER,
    "google": GOOGLE_PROVIDER,
    "apple": APPLE_PROVIDER,
}
_SUPABASE_PROVIDERS = {v: k for k, v in _CANONICAL_PROVIDERS.items()}

_ACCOUNT_EXISTS_CODES = {
    "user_already_exists",
    "email_exists",
    "identity_already_exists",
}
_INVALID_CREDENTIAL_CODES = {
    "invalid_credentials",
    "weak_password",
    "email_address_invalid",
    "validation_failed",
    "bad_jwt",
}

DELETE_USER_FUNCTION = "delete_current_user"


def canonical_provider_id(provider: str) -> Optional[str]:
    """Map a Supabase provider name to a canonical id; None for 'anonymous'."""
    if provider == "anonymous":
        return None
    return _CANONICAL_PROVIDERS.get(provider, provider)


def backend_user_from_supabase(user: Any) -> BackendUser:
    """Translate a supabase User model (or its JSON form) into a BackendUser."""
    data = user if isinstance(user, dict) else user.model_dump()
    app_metadata = data.get("app_metadata") or {}

    providers = app_metadata.get("providers") or []
    if not providers and app_metadata.get("provider"):
        providers = [app_metadata["provider"]]

    provider_ids = []
    for provider in providers:
        canonical = canonical_provider_id(provider)
        if canonical:
            provider_ids.append(canonical)

    return BackendUser(
        uid=str(data["id"]),
        email=data.get("email") or None,
        is_anonymous=bool(data.get("is_anonymous", False)),
        provider_ids=provider_ids,
    )


def classify_error(code: Optional[str], message: str) -> ColdWaterError:
    """Bucket a backend error code/message into the auth taxonomy."""
    lowered = message.lower()
    if code in _ACCOUNT_EXISTS_CODES or "already registered" in lowered or "already exists" in lowered:
        return AccountExistsError(message)
    if code in _INVALID_CREDENTIAL_CODES or "invalid login credentials" in lowered:
        return InvalidCredentialsError(message)
    return UnknownAuthError(message)


def classify_supabase_error(exc: Exception) -> ColdWaterError:
    """Translate a supabase or transport exception."""
    if isinstance(exc, (AuthRetryableError, httpx.TransportError)):
        return NetworkError(str(exc) or "Unable to reach the sign-in service")
    if isinstance(exc, APIError):
        return UnknownAuthError(exc.message or str(exc))
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    return classify_error(code, message)


class SupabaseIdentityBackend:
    """
    Identity backend over Supabase Auth.

    The client's session storage is the source of truth for the signed-in
    user; this class keeps a translated copy updated from auth events.
    """

    def __init__(self, client: Client, settings: Settings, timeout: float = 30.0):
        self._client = client
        self._settings = settings
        self._timeout = timeout
        self._listeners: list[StateListener] = []
        self._current: Optional[BackendUser] = None

        session = client.auth.get_session()
        if session is not None and session.user is not None:
            self._current = backend_user_from_supabase(session.user)

        self._subscription = client.auth.on_auth_state_change(self._on_auth_event)

    @property
    def current_user(self) -> Optional[BackendUser]:
        return self._current

    # -------------------------------------------------------------------------
    # Sign-in
    # -------------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Optional[BackendUser]:
        response = await self._call(
            self._client.auth.sign_in_with_password,
            {"email": email, "password": password},
        )
        return self._user_from_response(response)

    async def sign_up(self, email: str, password: str) -> Optional[BackendUser]:
        response = await self._call(
            self._client.auth.sign_up,
            {"email": email, "password": password},
        )
        return self._user_from_response(response)

    async def sign_in_anonymously(self) -> Optional[BackendUser]:
        response = await self._call(self._client.auth.sign_in_anonymously)
        return self._user_from_response(response)

    async def sign_in_with_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        if credential.is_password:
            return await self.sign_in_with_password(credential.email or "", credential.password or "")

        response = await self._call(
            self._client.auth.sign_in_with_id_token,
            self._id_token_payload(credential, token_key="token"),
        )
        return self._user_from_response(response)

    # -------------------------------------------------------------------------
    # Linking
    # -------------------------------------------------------------------------

    async def link_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        if self._current is None:
            raise NotAuthenticatedError()

        if credential.is_password:
            response = await self._call(
                self._client.auth.update_user,
                {"email": credential.email, "password": credential.password},
            )
            return self._user_from_response(response)

        return await self._link_id_token(credential)

    async def _link_id_token(self, credential: ProviderCredential) -> Optional[BackendUser]:
        """
        Link a provider id token to the signed-in user.

        supabase-py only exposes redirect-based identity linking, so this
        posts the id_token grant with link_identity set directly to GoTrue,
        authenticated as the current user.
        """
        session = await self._call(self._client.auth.get_session)
        if session is None:
            raise NotAuthenticatedError()

        payload = self._id_token_payload(credential, token_key="id_token")
        payload["link_identity"] = True

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as http:
                response = await http.post(
                    f"{self._settings.supabase_url.rstrip('/')}/auth/v1/token",
                    params={"grant_type": "id_token"},
                    json=payload,
                    headers={
                        "apikey": self._settings.supabase_anon_key,
                        "Authorization": f"Bearer {session.access_token}",
                    },
                )
        except httpx.TransportError as e:
            raise NetworkError(str(e) or "Unable to reach the sign-in service") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)

        data = response.json()
        if data.get("access_token") and data.get("refresh_token"):
            # Install the new session; supabase announces the updated user
            await self._call(
                self._client.auth.set_session,
                data["access_token"],
                data["refresh_token"],
            )

        user_data = data.get("user")
        if not user_data:
            return None
        user = backend_user_from_supabase(user_data)
        self._current = user
        return user

    # -------------------------------------------------------------------------
    # Sign-out and deletion
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        await self._call(self._client.auth.sign_out)

    async def delete_current_user(self) -> None:
        if self._current is None:
            raise NotAuthenticatedError()
        await self._call(self._client.rpc(DELETE_USER_FUNCTION).execute)
        # The refresh token died with the user; only the local session is left
        await self._call(self._client.auth.sign_out, {"scope": "local"})

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def add_state_listener(self, listener: StateListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        self._subscription.unsubscribe()

    def _on_auth_event(self, event: str, session: Any) -> None:
        user = getattr(session, "user", None) if session is not None else None
        if event == "SIGNED_OUT" or user is None:
            self._current = None
        else:
            self._current = backend_user_from_supabase(user)
        logger.debug(f"Supabase auth event {event}")

        for listener in list(self._listeners):
            listener(self._current)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _call(self, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(fn, *args)
        except (SupabaseAuthError, APIError, httpx.HTTPError) as e:
            raise classify_supabase_error(e) from e

    def _user_from_response(self, response: Any) -> Optional[BackendUser]:
        user = getattr(response, "user", None) if response is not None else None
        if user is None:
            return None
        backend_user = backend_user_from_supabase(user)
        self._current = backend_user
        return backend_user

    @staticmethod
    def _id_token_payload(credential: ProviderCredential, token_key: str) -> dict[str, Any]:
        provider = _SUPABASE_PROVIDERS.get(credential.provider, credential.provider)
        payload: dict[str, Any] = {"provider": provider, token_key: credential.id_token}
        if credential.access_token:
            payload["access_token"] = credential.access_token
        if credential.raw_nonce:
            payload["nonce"] = credential.raw_nonce
        return payload

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ColdWaterError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        code = body.get("error_code") or body.get("code")
        message = body.get("msg") or body.get("message") or response.text or "Request failed"
        if response.status_code >= 500:
            return NetworkError(message)
        return classify_error(code if isinstance(code, str) else None, message)
