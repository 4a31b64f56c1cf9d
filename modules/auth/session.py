"""
Identity session store.

Caches the latest confirmed Identity. The only writer is the identity
backend's change notification: operation results never touch the session
directly, so the session cannot drift from what the backend confirmed.
"""

import asyncio
import logging
from typing import Callable, Optional

from .interfaces import IIdentityBackend, Unsubscribe
from .models import (
    GOOGLE_PROVIDER,
    PASSWORD_PROVIDER,
    BackendUser,
    Identity,
    LoginType,
)

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[Identity]], None]


def classify_login_type(is_anonymous: bool, provider_ids: list[str]) -> LoginType:
    """
    Derive the login type from the backend's provider list.

    Only the first provider counts. Anonymous users, an empty list and any
    provider other than Google or password all map to guest.
    """
    if is_anonymous or not provider_ids:
        return LoginType.GUEST

    provider_id = provider_ids[0]
    if provider_id == GOOGLE_PROVIDER:
        return LoginType.GOOGLE
    if provider_id == PASSWORD_PROVIDER:
        return LoginType.EMAIL
    return LoginType.GUEST


def identity_from_backend_user(user: BackendUser) -> Identity:
    """Translate a backend user record into an Identity."""
    return Identity(
        id=user.uid,
        email=user.email,
        login_type=classify_login_type(user.is_anonymous, user.provider_ids),
        is_anonymous=user.is_anonymous,
    )


class SessionStore:
    """
    Holds the current Identity and notifies subscribers on change.

    start() must be called once, from the event loop that owns UI state.
    Backend notifications arriving on other threads are handed back to
    that loop before the session is updated.
    """

    def __init__(self, backend: IIdentityBackend):
        self._backend = backend
        self._current: Optional[Identity] = None
        self._is_loading = False
        self._listeners: list[SessionListener] = []
        self._unsubscribe: Optional[Unsubscribe] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to the backend and load its current user. Idempotent."""
        if self._unsubscribe is not None:
            return
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
        self._unsubscribe = self._backend.add_state_listener(self._on_backend_change)
        self._apply(self._backend.current_user)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def is_started(self) -> bool:
        return self._unsubscribe is not None

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def current(self) -> Optional[Identity]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    @property
    def is_anonymous(self) -> bool:
        return self._current is not None and self._current.is_anonymous

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    def set_loading(self, is_loading: bool) -> None:
        self._is_loading = is_loading

    def subscribe(self, listener: SessionListener) -> Unsubscribe:
        """Call listener with the new Identity (or None) on every change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Backend notifications
    # -------------------------------------------------------------------------

    def _on_backend_change(self, user: Optional[BackendUser]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            self._apply(user)
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is loop:
            self._apply(user)
        else:
            loop.call_soon_threadsafe(self._apply, user)

    def _apply(self, user: Optional[BackendUser]) -> None:
        identity = identity_from_backend_user(user) if user is not None else None
        if identity == self._current:
            return

        self._current = identity
        if identity is None:
            logger.debug("Session cleared")
        else:
            logger.debug(f"Session identity {identity.id} ({identity.login_type.value})")

        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                logger.exception("Session listener failed")
