"""
View-models for the sign-in, sign-up, welcome and account conversion screens.

Each one calls the auth service and turns the outcome into an
AuthenticationStatus. Typed auth failures become alerts; anything else
propagates.
"""

import logging
from typing import Optional

from modules.auth import AuthProvider, ConversionMethod, IAuthService, Identity, SessionStore
from shared.exceptions import ColdWaterError

from .base import CredentialForm, ViewModel
from .status import AuthenticationStatus

logger = logging.getLogger(__name__)


class SignInViewModel(ViewModel):
    """Email/password log-in form."""

    def __init__(self, auth: IAuthService):
        super().__init__()
        self._auth = auth
        self.email = ""
        self.password = ""

    async def login(self) -> Optional[Identity]:
        async with self._busy():
            try:
                identity = await self._auth.login(self.email, self.password)
            except ColdWaterError as e:
                self._set_status(AuthenticationStatus.from_error("Error", e))
                return None
        self._set_status(AuthenticationStatus.LOG_IN_SUCCESS)
        return identity


class SignUpViewModel(CredentialForm):
    """Email/password account creation form."""

    def __init__(self, auth: IAuthService):
        super().__init__()
        self._auth = auth

    async def sign_up(self) -> Optional[Identity]:
        problem = self.validation_error
        if problem is not None:
            self._set_status(AuthenticationStatus(title="Error", message=problem))
            return None

        async with self._busy():
            try:
                identity = await self._auth.sign_up(self.email, self.password)
            except ColdWaterError as e:
                self._set_status(AuthenticationStatus.from_error("Error", e))
                return None
        logger.debug(f"Signed up {identity.id}")
        self._set_status(AuthenticationStatus.SIGN_UP_SUCCESS)
        return identity


class WelcomeViewModel(ViewModel):
    """First screen: guest, Google and Apple sign-in buttons."""

    def __init__(self, auth: IAuthService):
        super().__init__()
        self._auth = auth
        self.showing_alert = False

    async def continue_as_guest(self) -> Optional[Identity]:
        return await self._sign_in(self._auth.sign_in_anonymously, "Guest Sign-In Failed")

    async def sign_in_with_google(self) -> Optional[Identity]:
        return await self._sign_in(
            lambda: self._auth.provider_sign_in(AuthProvider.GOOGLE), "Google Sign-In Failed"
        )

    async def sign_in_with_apple(self) -> Optional[Identity]:
        return await self._sign_in(
            lambda: self._auth.provider_sign_in(AuthProvider.APPLE), "Apple Sign-In Failed"
        )

    def dismiss_alert(self) -> None:
        self.showing_alert = False
        self._set_status(None)

    async def _sign_in(self, action, failure_title: str) -> Optional[Identity]:
        async with self._busy():
            try:
                identity = await action()
            except ColdWaterError as e:
                self.showing_alert = True
                self._set_status(AuthenticationStatus.from_error(failure_title, e))
                return None
        self._set_status(AuthenticationStatus.LOG_IN_SUCCESS)
        return identity


class AccountConversionViewModel(CredentialForm):
    """Upgrades the current guest identity to a permanent account."""

    NOT_ANONYMOUS_MESSAGE = "You're already signed in with an account"

    def __init__(self, auth: IAuthService, session: SessionStore):
        super().__init__()
        self._auth = auth
        self._session = session

    async def convert_account(self) -> Optional[Identity]:
        problem = self.validation_error
        if problem is not None:
            self._set_status(AuthenticationStatus(title="Error", message=problem))
            return None
        return await self._convert(
            ConversionMethod.EMAIL, "Account Creation Failed", self.email, self.password
        )

    async def convert_with_google(self) -> Optional[Identity]:
        return await self._convert(ConversionMethod.GOOGLE, "Google Sign-In Failed")

    async def convert_with_apple(self) -> Optional[Identity]:
        return await self._convert(ConversionMethod.APPLE, "Apple Sign-In Failed")

    def clear_status(self) -> None:
        self._set_status(None)

    async def _convert(
        self,
        method: ConversionMethod,
        failure_title: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Optional[Identity]:
        if not self._session.is_anonymous:
            self._set_status(AuthenticationStatus(title="Error", message=self.NOT_ANONYMOUS_MESSAGE))
            return None

        async with self._busy():
            try:
                identity = await self._auth.convert_anonymous_to_permanent(
                    method, email=email, password=password
                )
            except ColdWaterError as e:
                self._set_status(AuthenticationStatus.from_error(failure_title, e))
                return None
        self._set_status(AuthenticationStatus.SIGN_UP_SUCCESS)
        return identity
