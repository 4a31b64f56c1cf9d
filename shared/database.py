"""
Supabase client factory.

The app talks to Supabase with the public anon key only: every request runs
as the signed-in user, so Row Level Security applies to all table access.
The same client carries the auth session used by the identity backend.
"""

from typing import Optional
from supabase import create_client, Client, ClientOptions
from supabase_auth import SyncSupportedStorage

from .config import get_settings
from .storage import IKeyValueStore

# Module-level client cache
_client: Optional[Client] = None


class SupabaseSessionStorage(SyncSupportedStorage):
    """Persists the Supabase auth session in a local key/value store."""

    def __init__(self, store: IKeyValueStore) -> None:
        self._store = store

    def get_item(self, key: str) -> Optional[str]:
        data = self._store.get(key)
        return data.decode("utf-8") if data is not None else None

    def set_item(self, key: str, value: str) -> None:
        self._store.set(key, value.encode("utf-8"))

    def remove_item(self, key: str) -> None:
        self._store.remove(key)


def get_supabase_client(session_store: Optional[IKeyValueStore] = None) -> Client:
    """
    Get the shared Supabase client.

    Args:
        session_store: Where to keep the auth session between runs. The
            session lives in memory only when omitted. Only used when the
            client is first created.

    Returns:
        Supabase client configured with the anon key

    Raises:
        RuntimeError: If SUPABASE_URL or SUPABASE_ANON_KEY is not set
    """
    global _client

    if _client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_anon_key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_ANON_KEY environment variables."
            )
        if session_store is not None:
            options = ClientOptions(storage=SupabaseSessionStorage(session_store))
        else:
            options = ClientOptions()
        _client = create_client(
            settings.supabase_url,
            settings.supabase_anon_key,
            options=options,
        )

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached client.

    Useful for testing or when configuration changes.
    """
    global _client
    _client = None
