"""Title/message pairs shown to the user after an authentication attempt."""

from dataclasses import dataclass
from typing import ClassVar

from shared.exceptions import ColdWaterError

SUCCESS_TITLE = "Successful"


@dataclass(frozen=True)
class AuthenticationStatus:
    """
    Outcome of an authentication attempt.

    A status titled "Successful" is what navigation watches for to move
    on to the next screen; anything else is shown as an alert.
    """

    title: str = ""
    message: str = ""

    SIGN_UP_SUCCESS: ClassVar["AuthenticationStatus"]
    LOG_IN_SUCCESS: ClassVar["AuthenticationStatus"]
    ERROR: ClassVar["AuthenticationStatus"]

    @property
    def is_success(self) -> bool:
        return self.title == SUCCESS_TITLE

    @classmethod
    def from_error(cls, title: str, error: Exception) -> "AuthenticationStatus":
        if isinstance(error, ColdWaterError):
            message = error.message
        else:
            message = str(error)
        return cls(title=title, message=message or cls.ERROR.message)


AuthenticationStatus.SIGN_UP_SUCCESS = AuthenticationStatus(
    title=SUCCESS_TITLE, message="Your account has been created successfully"
)
AuthenticationStatus.LOG_IN_SUCCESS = AuthenticationStatus(
    title=SUCCESS_TITLE, message="Your account has been logged in successfully"
)
AuthenticationStatus.ERROR = AuthenticationStatus(
    title="Error", message="Oops! Something went wrong. Please try again."
)
