"""Tests for modules/auth/supabase_backend.py against a mocked supabase client."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from postgrest.exceptions import APIError
from supabase_auth.errors import AuthApiError, AuthRetryableError

from modules.auth.exceptions import (
    AccountExistsError,
    InvalidCredentialsError,
    NetworkError,
    NotAuthenticatedError,
    UnknownAuthError,
)
from modules.auth.models import (
    APPLE_PROVIDER,
    GOOGLE_PROVIDER,
    PASSWORD_PROVIDER,
    ProviderCredential,
)
from modules.auth.supabase_backend import (
    SupabaseIdentityBackend,
    backend_user_from_supabase,
    canonical_provider_id,
    classify_error,
    classify_supabase_error,
)
from shared.config import Settings


def user_json(uid="user-1", email=None, providers=(), is_anonymous=False):
    return {
        "id": uid,
        "email": email,
        "is_anonymous": is_anonymous,
        "app_metadata": {"providers": list(providers)},
    }


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        supabase_url="https://project.supabase.co/",
        supabase_anon_key="anon-key",
    )


@pytest.fixture
def client():
    client = MagicMock()
    client.auth.get_session.return_value = None
    return client


@pytest.fixture
def supabase_backend(client, settings):
    return SupabaseIdentityBackend(client, settings)


class TestTranslation:
    def test_canonical_provider_id(self):
        assert canonical_provider_id("email") == PASSWORD_PROVIDER
        assert canonical_provider_id("google") == GOOGLE_PROVIDER
        assert canonical_provider_id("apple") == APPLE_PROVIDER
        assert canonical_provider_id("anonymous") is None
        assert canonical_provider_id("github") == "github"

    def test_user_keeps_provider_order(self):
        user = backend_user_from_supabase(
            user_json(email="a@example.com", providers=["google", "email"])
        )
        assert user.provider_ids == [GOOGLE_PROVIDER, PASSWORD_PROVIDER]
        assert user.email == "a@example.com"

    def test_anonymous_user(self):
        user = backend_user_from_supabase(
            user_json(email="", providers=["anonymous"], is_anonymous=True)
        )
        assert user.is_anonymous is True
        assert user.provider_ids == []
        assert user.email is None

    def test_single_provider_fallback(self):
        data = user_json()
        data["app_metadata"] = {"provider": "email"}
        assert backend_user_from_supabase(data).provider_ids == [PASSWORD_PROVIDER]

    def test_accepts_model_objects(self):
        model = MagicMock()
        model.model_dump.return_value = user_json(uid="from-model")
        assert backend_user_from_supabase(model).uid == "from-model"


class TestErrorClassification:
    @pytest.mark.parametrize("code", ["user_already_exists", "email_exists", "identity_already_exists"])
    def test_account_exists_codes(self, code):
        assert isinstance(classify_error(code, "taken"), AccountExistsError)

    def test_account_exists_message(self):
        assert isinstance(classify_error(None, "User already registered"), AccountExistsError)

    def test_invalid_credentials(self):
        assert isinstance(classify_error("weak_password", "too short"), InvalidCredentialsError)
        assert isinstance(classify_error(None, "Invalid login credentials"), InvalidCredentialsError)

    def test_unknown(self):
        error = classify_error("over_request_rate_limit", "Slow down")
        assert isinstance(error, UnknownAuthError)
        assert error.message == "Slow down"

    def test_retryable_is_network(self):
        assert isinstance(
            classify_supabase_error(AuthRetryableError("gateway timeout", 504)), NetworkError
        )

    def test_transport_error_is_network(self):
        assert isinstance(classify_supabase_error(httpx.ConnectError("refused")), NetworkError)

    def test_api_error(self):
        error = classify_supabase_error(APIError({"message": "function missing", "code": "42883"}))
        assert isinstance(error, UnknownAuthError)
        assert error.message == "function missing"

    def test_auth_api_error_uses_code(self):
        error = classify_supabase_error(
            AuthApiError("Invalid login credentials", 400, "invalid_credentials")
        )
        assert isinstance(error, InvalidCredentialsError)


class TestSupabaseIdentityBackend:
    def test_restores_persisted_session(self, settings):
        client = MagicMock()
        client.auth.get_session.return_value = MagicMock(
            user=user_json(uid="persisted", providers=["email"])
        )
        backend = SupabaseIdentityBackend(client, settings)
        assert backend.current_user.uid == "persisted"
        client.auth.on_auth_state_change.assert_called_once()

    @pytest.mark.asyncio
    async def test_sign_in_with_password(self, supabase_backend, client):
        client.auth.sign_in_with_password.return_value = MagicMock(
            user=user_json(email="a@example.com", providers=["email"])
        )

        user = await supabase_backend.sign_in_with_password("a@example.com", "secret1")

        client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "a@example.com", "password": "secret1"}
        )
        assert user.provider_ids == [PASSWORD_PROVIDER]
        assert supabase_backend.current_user == user

    @pytest.mark.asyncio
    async def test_sign_in_error_is_classified(self, supabase_backend, client):
        client.auth.sign_in_with_password.side_effect = AuthApiError(
            "Invalid login credentials", 400, "invalid_credentials"
        )
        with pytest.raises(InvalidCredentialsError):
            await supabase_backend.sign_in_with_password("a@example.com", "wrong")

    @pytest.mark.asyncio
    async def test_sign_up_without_user(self, supabase_backend, client):
        client.auth.sign_up.return_value = MagicMock(user=None)
        assert await supabase_backend.sign_up("a@example.com", "secret1") is None

    @pytest.mark.asyncio
    async def test_apple_id_token_payload(self, supabase_backend, client):
        client.auth.sign_in_with_id_token.return_value = MagicMock(
            user=user_json(providers=["apple"])
        )
        credential = ProviderCredential(
            provider=APPLE_PROVIDER, id_token="apple-token", raw_nonce="raw"
        )

        await supabase_backend.sign_in_with_credential(credential)

        client.auth.sign_in_with_id_token.assert_called_once_with(
            {"provider": "apple", "token": "apple-token", "nonce": "raw"}
        )

    @pytest.mark.asyncio
    async def test_link_requires_session(self, supabase_backend):
        with pytest.raises(NotAuthenticatedError):
            await supabase_backend.link_credential(
                ProviderCredential.email_password("a@example.com", "secret1")
            )

    @pytest.mark.asyncio
    async def test_link_email_updates_user(self, supabase_backend, client):
        client.auth.sign_in_anonymously.return_value = MagicMock(
            user=user_json(uid="guest", is_anonymous=True, providers=["anonymous"])
        )
        client.auth.update_user.return_value = MagicMock(
            user=user_json(uid="guest", email="a@example.com", providers=["email"])
        )
        await supabase_backend.sign_in_anonymously()

        user = await supabase_backend.link_credential(
            ProviderCredential.email_password("a@example.com", "secret1")
        )

        client.auth.update_user.assert_called_once_with(
            {"email": "a@example.com", "password": "secret1"}
        )
        assert user.uid == "guest"
        assert user.is_anonymous is False

    @pytest.mark.asyncio
    async def test_link_google_posts_id_token_grant(self, supabase_backend, client):
        client.auth.sign_in_anonymously.return_value = MagicMock(
            user=user_json(uid="guest", is_anonymous=True)
        )
        client.auth.get_session.return_value = MagicMock(access_token="session-token")
        await supabase_backend.sign_in_anonymously()

        http = MagicMock()
        http.post = AsyncMock(
            return_value=httpx.Response(
                200,
                json={
                    "access_token": "new-access",
                    "refresh_token": "new-refresh",
                    "user": user_json(uid="guest", providers=["google"]),
                },
            )
        )
        with patch("modules.auth.supabase_backend.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = http
            user = await supabase_backend.link_credential(
                ProviderCredential(provider=GOOGLE_PROVIDER, id_token="g-token")
            )

        url = http.post.call_args.args[0]
        kwargs = http.post.call_args.kwargs
        assert url == "https://project.supabase.co/auth/v1/token"
        assert kwargs["params"] == {"grant_type": "id_token"}
        assert kwargs["json"] == {"provider": "google", "id_token": "g-token", "link_identity": True}
        assert kwargs["headers"]["Authorization"] == "Bearer session-token"
        client.auth.set_session.assert_called_once_with("new-access", "new-refresh")
        assert user.uid == "guest"
        assert user.provider_ids == [GOOGLE_PROVIDER]

    @pytest.mark.asyncio
    async def test_link_google_conflict(self, supabase_backend, client):
        client.auth.sign_in_anonymously.return_value = MagicMock(
            user=user_json(uid="guest", is_anonymous=True)
        )
        client.auth.get_session.return_value = MagicMock(access_token="session-token")
        await supabase_backend.sign_in_anonymously()

        http = MagicMock()
        http.post = AsyncMock(
            return_value=httpx.Response(
                422, json={"error_code": "identity_already_exists", "msg": "Identity is already linked"}
            )
        )
        with patch("modules.auth.supabase_backend.httpx.AsyncClient") as client_cls:
            client_cls.return_value.__aenter__.return_value = http
            with pytest.raises(AccountExistsError):
                await supabase_backend.link_credential(
                    ProviderCredential(provider=GOOGLE_PROVIDER, id_token="g-token")
                )

    @pytest.mark.asyncio
    async def test_delete_calls_rpc_then_signs_out_locally(self, supabase_backend, client):
        client.auth.sign_in_anonymously.return_value = MagicMock(
            user=user_json(uid="guest", is_anonymous=True)
        )
        await supabase_backend.sign_in_anonymously()

        await supabase_backend.delete_current_user()

        client.rpc.assert_called_once_with("delete_current_user")
        client.rpc.return_value.execute.assert_called_once()
        client.auth.sign_out.assert_called_once_with({"scope": "local"})

    @pytest.mark.asyncio
    async def test_delete_without_user(self, supabase_backend):
        with pytest.raises(NotAuthenticatedError):
            await supabase_backend.delete_current_user()

    def test_auth_events_reach_listeners(self, supabase_backend, client):
        callback = client.auth.on_auth_state_change.call_args.args[0]
        seen = []
        supabase_backend.add_state_listener(seen.append)

        callback("SIGNED_IN", MagicMock(user=user_json(uid="u1", providers=["email"])))
        callback("SIGNED_OUT", None)

        assert seen[0].uid == "u1"
        assert seen[1] is None
        assert supabase_backend.current_user is None
