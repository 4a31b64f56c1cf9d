"""
In-memory identity backend.

Mirrors the behavior the app relies on from the hosted backend: email
accounts, anonymous users, provider-token sign-in, linking that keeps the
user id, and synchronous state-change notifications. Used by the test
suite and by the terminal front end when Supabase is not configured.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from .exceptions import (
    AccountExistsError,
    InvalidCredentialsError,
    NotAuthenticatedError,
)
from .interfaces import StateListener, Unsubscribe
from .models import PASSWORD_PROVIDER, BackendUser, ProviderCredential


MIN_PASSWORD_LENGTH = 6


@dataclass
class _PasswordAccount:
    uid: str
    password: str


class InMemoryIdentityBackend:
    """Identity backend keeping all users in process memory."""

    def __init__(self) -> None:
        self._users: dict[str, BackendUser] = {}
        self._password_accounts: dict[str, _PasswordAccount] = {}
        self._provider_subjects: dict[tuple[str, str], str] = {}
        self._current: Optional[BackendUser] = None
        self._listeners: list[StateListener] = []

    @property
    def current_user(self) -> Optional[BackendUser]:
        return self._current

    @property
    def users(self) -> list[BackendUser]:
        return list(self._users.values())

    # -------------------------------------------------------------------------
    # Sign-in
    # -------------------------------------------------------------------------

    async def sign_in_with_password(self, email: str, password: str) -> Optional[BackendUser]:
        account = self._password_accounts.get(_normalize(email))
        if account is None or account.password != password:
            raise InvalidCredentialsError()
        return self._set_current(self._users[account.uid])

    async def sign_up(self, email: str, password: str) -> Optional[BackendUser]:
        key = _normalize(email)
        if key in self._password_accounts:
            raise AccountExistsError()
        _check_password(password)

        user = BackendUser(
            uid=_new_uid(),
            email=email,
            is_anonymous=False,
            provider_ids=[PASSWORD_PROVIDER],
        )
        self._users[user.uid] = user
        self._password_accounts[key] = _PasswordAccount(uid=user.uid, password=password)
        return self._set_current(user)

    async def sign_in_anonymously(self) -> Optional[BackendUser]:
        user = BackendUser(uid=_new_uid(), is_anonymous=True)
        self._users[user.uid] = user
        return self._set_current(user)

    async def sign_in_with_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        if credential.is_password:
            return await self.sign_in_with_password(credential.email or "", credential.password or "")

        subject = _subject(credential)
        uid = self._provider_subjects.get(subject)
        if uid is None:
            user = BackendUser(
                uid=_new_uid(),
                email=credential.email,
                is_anonymous=False,
                provider_ids=[credential.provider],
            )
            self._users[user.uid] = user
            self._provider_subjects[subject] = user.uid
        else:
            user = self._users[uid]
        return self._set_current(user)

    # -------------------------------------------------------------------------
    # Linking
    # -------------------------------------------------------------------------

    async def link_credential(self, credential: ProviderCredential) -> Optional[BackendUser]:
        current = self._current
        if current is None:
            raise NotAuthenticatedError()

        if credential.is_password:
            key = _normalize(credential.email or "")
            if not key:
                raise InvalidCredentialsError("Email is required")
            if key in self._password_accounts:
                raise AccountExistsError()
            _check_password(credential.password or "")
            self._password_accounts[key] = _PasswordAccount(
                uid=current.uid, password=credential.password or ""
            )
            email = credential.email
        else:
            subject = _subject(credential)
            if subject in self._provider_subjects:
                raise AccountExistsError("This account is already linked to another user")
            self._provider_subjects[subject] = current.uid
            email = current.email or credential.email

        linked = current.model_copy(
            update={
                "email": email,
                "is_anonymous": False,
                "provider_ids": [*current.provider_ids, credential.provider],
            }
        )
        self._users[linked.uid] = linked
        return self._set_current(linked)

    # -------------------------------------------------------------------------
    # Sign-out and deletion
    # -------------------------------------------------------------------------

    async def sign_out(self) -> None:
        self._set_current(None)

    async def delete_current_user(self) -> None:
        current = self._current
        if current is None:
            raise NotAuthenticatedError()

        self._users.pop(current.uid, None)
        self._password_accounts = {
            k: v for k, v in self._password_accounts.items() if v.uid != current.uid
        }
        self._provider_subjects = {
            k: v for k, v in self._provider_subjects.items() if v != current.uid
        }
        self._set_current(None)

    # -------------------------------------------------------------------------
    # Notifications
    # -------------------------------------------------------------------------

    def add_state_listener(self, listener: StateListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_current(self, user: Optional[BackendUser]) -> Optional[BackendUser]:
        self._current = user
        for listener in list(self._listeners):
            listener(user)
        return user


def _new_uid() -> str:
    return uuid.uuid4().hex


def _normalize(email: str) -> str:
    return email.strip().lower()


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidCredentialsError(
            f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
        )


def _subject(credential: ProviderCredential) -> tuple[str, str]:
    return (credential.provider, credential.id_token or "")
