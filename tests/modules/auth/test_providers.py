"""Tests for modules/auth/providers.py."""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from oauthlib.oauth2.rfc6749.errors import AccessDeniedError

from modules.auth.exceptions import (
    MissingClientConfigurationError,
    MissingCredentialsError,
    UserCancelledError,
)
from modules.auth.models import APPLE_PROVIDER, GOOGLE_PROVIDER
from modules.auth.nonce import NonceChallenge, sha256_hex
from modules.auth.providers import (
    AppleAuthorization,
    AppleAuthorizationRequest,
    AppleCredentialProvider,
    GoogleCredentialProvider,
)


@pytest.fixture
def client_secrets(tmp_path):
    path = tmp_path / "client_secret.json"
    path.write_text('{"installed": {}}')
    return str(path)


class TestGoogleCredentialProvider:
    @pytest.mark.asyncio
    async def test_missing_secrets_path(self):
        """No configured secrets file means the provider is unavailable."""
        provider = GoogleCredentialProvider("", ["openid"])
        with pytest.raises(MissingClientConfigurationError):
            await provider.obtain_credential()

    @pytest.mark.asyncio
    async def test_secrets_file_not_found(self, tmp_path, caplog):
        missing = tmp_path / "absent.json"
        provider = GoogleCredentialProvider(str(missing), ["openid"])
        with caplog.at_level(logging.WARNING, logger="modules.auth.providers"):
            with pytest.raises(MissingClientConfigurationError):
                await provider.obtain_credential()
        assert caplog.records[-1].getMessage() == f"Google client secrets not found: {missing}"

    @pytest.mark.asyncio
    @patch("modules.auth.providers.InstalledAppFlow")
    async def test_returns_id_token_credential(self, mock_flow_cls, client_secrets):
        """A completed consent flow should yield the id and access tokens."""
        credentials = MagicMock(id_token="google-id-token", token="google-access-token")
        mock_flow_cls.from_client_secrets_file.return_value.run_local_server.return_value = credentials

        provider = GoogleCredentialProvider(client_secrets, ["openid", "email"])
        credential = await provider.obtain_credential()

        assert credential.provider == GOOGLE_PROVIDER
        assert credential.id_token == "google-id-token"
        assert credential.access_token == "google-access-token"
        mock_flow_cls.from_client_secrets_file.assert_called_once_with(
            client_secrets, ["openid", "email"]
        )
        mock_flow_cls.from_client_secrets_file.return_value.run_local_server.assert_called_once_with(
            port=0
        )

    @pytest.mark.asyncio
    @patch("modules.auth.providers.InstalledAppFlow")
    async def test_access_denied_is_cancellation(self, mock_flow_cls, client_secrets):
        mock_flow_cls.from_client_secrets_file.return_value.run_local_server.side_effect = (
            AccessDeniedError()
        )
        provider = GoogleCredentialProvider(client_secrets, ["openid"])
        with pytest.raises(UserCancelledError):
            await provider.obtain_credential()

    @pytest.mark.asyncio
    @patch("modules.auth.providers.InstalledAppFlow")
    async def test_bad_secrets_file(self, mock_flow_cls, client_secrets):
        """A file that is not an OAuth client config is a configuration problem."""
        mock_flow_cls.from_client_secrets_file.side_effect = ValueError("Client secrets must be...")
        provider = GoogleCredentialProvider(client_secrets, ["openid"])
        with pytest.raises(MissingClientConfigurationError):
            await provider.obtain_credential()

    @pytest.mark.asyncio
    @patch("modules.auth.providers.InstalledAppFlow")
    async def test_missing_id_token(self, mock_flow_cls, client_secrets):
        credentials = MagicMock(id_token=None, token="access")
        mock_flow_cls.from_client_secrets_file.return_value.run_local_server.return_value = credentials
        provider = GoogleCredentialProvider(client_secrets, ["openid"])
        with pytest.raises(MissingCredentialsError):
            await provider.obtain_credential()


class TestAppleCredentialProvider:
    @pytest.mark.asyncio
    async def test_no_presenter(self):
        with pytest.raises(MissingClientConfigurationError):
            await AppleCredentialProvider(None).obtain_credential()

    @pytest.mark.asyncio
    async def test_sends_hash_and_keeps_raw_nonce(self, make_apple_token):
        """The request carries the digest; the credential carries the raw nonce."""
        challenge = NonceChallenge.create()
        seen: list[AppleAuthorizationRequest] = []

        async def presenter(request):
            seen.append(request)
            return AppleAuthorization(identity_token=make_apple_token(nonce=request.nonce))

        provider = AppleCredentialProvider(
            presenter, client_id="com.example.coldwater", nonce_factory=lambda: challenge
        )
        credential = await provider.obtain_credential()

        assert seen[0].nonce == challenge.hashed
        assert seen[0].nonce == sha256_hex(credential.raw_nonce)
        assert seen[0].scopes == ("name", "email")
        assert seen[0].client_id == "com.example.coldwater"
        assert credential.provider == APPLE_PROVIDER
        assert credential.raw_nonce == challenge.raw
        assert credential.email == "apple-user@example.com"

    @pytest.mark.asyncio
    async def test_token_without_nonce_claim_is_accepted(self, make_apple_token):
        presenter = AsyncMock(return_value=AppleAuthorization(identity_token=make_apple_token()))
        credential = await AppleCredentialProvider(presenter).obtain_credential()
        assert credential.id_token

    @pytest.mark.asyncio
    async def test_nonce_mismatch(self, make_apple_token):
        token = make_apple_token(nonce=sha256_hex("replayed"))
        presenter = AsyncMock(return_value=AppleAuthorization(identity_token=token))
        with pytest.raises(MissingCredentialsError):
            await AppleCredentialProvider(presenter).obtain_credential()

    @pytest.mark.asyncio
    async def test_missing_token(self):
        presenter = AsyncMock(return_value=AppleAuthorization(identity_token=None))
        with pytest.raises(MissingCredentialsError):
            await AppleCredentialProvider(presenter).obtain_credential()

    @pytest.mark.asyncio
    async def test_malformed_token(self):
        presenter = AsyncMock(return_value=AppleAuthorization(identity_token="not-a-jwt"))
        with pytest.raises(MissingCredentialsError):
            await AppleCredentialProvider(presenter).obtain_credential()

    @pytest.mark.asyncio
    async def test_presenter_cancellation_propagates(self):
        presenter = AsyncMock(side_effect=UserCancelledError("Apple"))
        with pytest.raises(UserCancelledError):
            await AppleCredentialProvider(presenter).obtain_credential()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nonce_claim", ["nonce-é", 12345, ["a", "b"]])
    async def test_unusable_nonce_claim(self, make_apple_token, nonce_claim):
        """Non-ASCII or non-string nonce claims are rejected as unusable credentials."""
        token = make_apple_token(nonce=nonce_claim)
        presenter = AsyncMock(return_value=AppleAuthorization(identity_token=token))

        with pytest.raises(MissingCredentialsError) as exc_info:
            await AppleCredentialProvider(presenter).obtain_credential()
        assert "nonce does not match" in exc_info.value.message
