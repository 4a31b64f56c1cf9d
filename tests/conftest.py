"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules:
an in-memory identity backend, a started session store, in-memory storage
and a preference store with a short save delay.
"""

from datetime import datetime, timedelta, timezone

import jwt  # PyJWT
import pytest

from app.dependencies import reset_container
from modules.auth.memory_backend import InMemoryIdentityBackend
from modules.auth.service import AuthService
from modules.auth.session import SessionStore
from modules.preferences.store import PreferenceStore
from shared.config import get_settings
from shared.database import reset_client_cache
from shared.storage import InMemoryKeyValueStore

# Short enough to keep debounce tests fast
TEST_SAVE_DELAY = 0.05


def _create_apple_token(
    nonce: object = None,
    email: str = "apple-user@example.com",
    subject: str = "apple-subject-001",
) -> str:
    """
    Create an Apple-shaped identity token for tests.

    Signed with a throwaway HS256 key; the code under test never verifies
    the signature.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "iss": "https://appleid.apple.com",
        "aud": "com.example.coldwater",
        "sub": subject,
        "email": email,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=10)).timestamp()),
    }
    if nonce is not None:
        payload["nonce"] = nonce
    return jwt.encode(payload, "test-apple-signing-key-not-verified-anywhere", algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset cached settings, client and container before and after each test."""
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()
    yield
    get_settings.cache_clear()
    reset_client_cache()
    reset_container()


@pytest.fixture
def backend() -> InMemoryIdentityBackend:
    return InMemoryIdentityBackend()


@pytest.fixture
def session(backend):
    """Session store subscribed to the in-memory backend."""
    store = SessionStore(backend)
    store.start()
    yield store
    store.stop()


@pytest.fixture
def storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def preference_store(storage) -> PreferenceStore:
    return PreferenceStore(storage, save_delay=TEST_SAVE_DELAY)


@pytest.fixture
def auth_service(backend, session, preference_store) -> AuthService:
    """Auth service over the in-memory backend, resetting the preference store."""
    return AuthService(backend, session, resettables=[preference_store])


@pytest.fixture
def make_apple_token():
    """Factory for Apple identity tokens (see _create_apple_token)."""
    return _create_apple_token
