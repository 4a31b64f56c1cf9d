"""
Dependency wiring for the terminal front end.

This module provides the "container" that wires together all module
implementations. View-models receive their services from here rather
than reaching for globals.

The identity backend is Supabase when SUPABASE_URL and SUPABASE_ANON_KEY
are set, and an in-memory backend otherwise.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import ICredentialProvider, IIdentityBackend
    from modules.auth.providers import ApplePresenter
    from modules.auth.service import AuthService
    from modules.auth.session import SessionStore
    from modules.preferences.interfaces import IPreferencesMirror
    from modules.preferences.store import PreferenceStore
    from modules.viewmodels.app_state import AppState
    from shared.storage import IKeyValueStore

logger = logging.getLogger(__name__)

SESSION_STORAGE_SUBDIR = "auth"


class ServiceContainer:
    """
    Container for all service instances.

    Services are created lazily on first access and cached for the
    container's lifetime. Use reset() to drop them.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        apple_presenter: "ApplePresenter | None" = None,
    ) -> None:
        self._settings = settings
        self._apple_presenter = apple_presenter

        self._storage: "IKeyValueStore | None" = None
        self._backend: "IIdentityBackend | None" = None
        self._session: "SessionStore | None" = None
        self._google: "ICredentialProvider | None" = None
        self._apple: "ICredentialProvider | None" = None
        self._mirror: "IPreferencesMirror | None" = None
        self._preferences: "PreferenceStore | None" = None
        self._app_state: "AppState | None" = None
        self._auth: "AuthService | None" = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def supabase_configured(self) -> bool:
        return bool(self.settings.supabase_url and self.settings.supabase_anon_key)

    @property
    def storage(self) -> "IKeyValueStore":
        """Get the local key/value store."""
        if self._storage is None:
            from shared.storage import FileKeyValueStore
            self._storage = FileKeyValueStore(self.settings.local_storage_dir)
        return self._storage

    @property
    def backend(self) -> "IIdentityBackend":
        """Get the identity backend instance."""
        if self._backend is None:
            if self.supabase_configured:
                from modules.auth.supabase_backend import SupabaseIdentityBackend
                from shared.database import get_supabase_client
                from shared.storage import FileKeyValueStore

                session_store = FileKeyValueStore(
                    Path(self.settings.local_storage_dir) / SESSION_STORAGE_SUBDIR
                )
                self._backend = SupabaseIdentityBackend(
                    get_supabase_client(session_store), self.settings
                )
            else:
                from modules.auth.memory_backend import InMemoryIdentityBackend
                logger.warning("Supabase is not configured; using an in-memory identity backend")
                self._backend = InMemoryIdentityBackend()
        return self._backend

    @property
    def session(self) -> "SessionStore":
        """Get the session store, subscribed to the backend."""
        if self._session is None:
            from modules.auth.session import SessionStore
            self._session = SessionStore(self.backend)
            self._session.start()
        return self._session

    @property
    def google(self) -> "ICredentialProvider":
        if self._google is None:
            from modules.auth.providers import GoogleCredentialProvider
            self._google = GoogleCredentialProvider(
                self.settings.google_client_secrets_path,
                self.settings.google_oauth_scopes,
            )
        return self._google

    @property
    def apple(self) -> "ICredentialProvider":
        if self._apple is None:
            from modules.auth.providers import AppleCredentialProvider
            self._apple = AppleCredentialProvider(
                self._apple_presenter,
                client_id=self.settings.apple_client_id,
            )
        return self._apple

    @property
    def mirror(self) -> "IPreferencesMirror | None":
        """Remote preference mirror, or None when sync is disabled."""
        if self._mirror is None and self.settings.enable_remote_sync and self.supabase_configured:
            from modules.preferences.repository import PreferencesRepository
            from shared.database import get_supabase_client
            self._mirror = PreferencesRepository(
                get_supabase_client(), table=self.settings.preferences_table
            )
        return self._mirror

    @property
    def preferences(self) -> "PreferenceStore":
        """Get the preference store, loaded and following the session identity."""
        if self._preferences is None:
            from modules.preferences.store import PreferenceStore

            session = self.session
            store = PreferenceStore(
                self.storage,
                key=self.settings.preferences_storage_key,
                save_delay=self.settings.preferences_save_delay,
                mirror=self.mirror,
                identity_id=session.current.id if session.current else None,
            )
            store.load()

            def follow_identity(identity) -> None:
                store.identity_id = identity.id if identity is not None else None

            session.subscribe(follow_identity)
            self._preferences = store
        return self._preferences

    @property
    def app_state(self) -> "AppState":
        if self._app_state is None:
            from modules.viewmodels.app_state import AppState
            self._app_state = AppState(self.storage)
        return self._app_state

    @property
    def auth(self) -> "AuthService":
        """Get the auth service, with local state registered for reset."""
        if self._auth is None:
            from modules.auth.service import AuthService
            from shared.storage import LocalStateReset

            self._auth = AuthService(
                backend=self.backend,
                session=self.session,
                google=self.google,
                apple=self.apple,
                resettables=[
                    self.preferences,
                    self.app_state,
                    LocalStateReset(self.storage),
                ],
            )
        return self._auth

    async def aclose(self) -> None:
        """Write any pending preference changes and wait for their sync."""
        if self._preferences is not None:
            if self._preferences.has_unsaved_changes:
                self._preferences.flush()
            await self._preferences.wait_for_sync()

    def reset(self) -> None:
        """
        Reset all cached services.

        Stops the session store's backend subscription first.
        """
        if self._session is not None:
            self._session.stop()
        self._storage = None
        self._backend = None
        self._session = None
        self._google = None
        self._apple = None
        self._mirror = None
        self._preferences = None
        self._app_state = None
        self._auth = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    The next call to get_container() creates a fresh container.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None
