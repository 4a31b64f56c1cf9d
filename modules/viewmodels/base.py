"""
Shared view-model plumbing.

View-models expose plain attributes for the UI to read and notify
subscribers whenever something visible changes. Loading is counted per
view-model, so one screen's spinner never reflects another screen's call.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from .status import AuthenticationStatus

MIN_PASSWORD_LENGTH = 6

ChangeListener = Callable[[], None]


def validate_credentials(email: str, password: str, passwords_match: bool = True) -> Optional[str]:
    """Return the first problem with a credential form, or None if it is valid."""
    if not email:
        return "Please enter your email address"
    if not password:
        return "Please enter a password"
    if not passwords_match:
        return "Passwords do not match"
    if len(password) < MIN_PASSWORD_LENGTH:
        return "Password must be at least 6 characters"
    return None


class ViewModel:
    """Base class with a status, a loading counter and change listeners."""

    def __init__(self) -> None:
        self.status: Optional[AuthenticationStatus] = None
        self._in_flight = 0
        self._listeners: list[ChangeListener] = []

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: Optional[AuthenticationStatus]) -> None:
        self.status = status
        self._changed()

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener()

    @asynccontextmanager
    async def _busy(self) -> AsyncIterator[None]:
        self._in_flight += 1
        self._changed()
        try:
            yield
        finally:
            self._in_flight -= 1
            self._changed()


class CredentialForm(ViewModel):
    """Email/password/confirmation fields with live match checking."""

    def __init__(self) -> None:
        super().__init__()
        self.email = ""
        self.password = ""
        self.password_confirmation = ""

    @property
    def passwords_match(self) -> bool:
        # No mismatch is reported until a confirmation has been typed
        return not self.password_confirmation or self.password == self.password_confirmation

    @property
    def validation_error(self) -> Optional[str]:
        return validate_credentials(self.email, self.password, self.passwords_match)

    @property
    def is_form_valid(self) -> bool:
        return self.validation_error is None
