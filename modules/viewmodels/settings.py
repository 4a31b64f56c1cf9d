"""Settings screen view-model: account linking, sign-out and deletion."""

from modules.auth import IAuthService, SessionStore
from shared.exceptions import ColdWaterError

from .base import ViewModel


class SettingsViewModel(ViewModel):
    """
    Account actions for the settings screen.

    Guests see "link account" and "log into another account"; permanent
    users see sign-out. Results are reported through the alert fields.
    """

    def __init__(self, auth: IAuthService, session: SessionStore):
        super().__init__()
        self._auth = auth
        self._session = session

        self.showing_account_conversion = False
        self.showing_sign_out_alert = False
        self.showing_delete_alert = False
        self.showing_error_alert = False
        self.showing_success_alert = False
        self.alert_title = ""
        self.alert_message = ""

    @property
    def is_anonymous(self) -> bool:
        return self._session.is_anonymous

    @property
    def should_show_anonymous_buttons(self) -> bool:
        return self.is_anonymous

    @property
    def should_show_signed_in_button(self) -> bool:
        return not self.is_anonymous

    def link_account_tapped(self) -> None:
        self.showing_account_conversion = True
        self._changed()

    def log_into_another_account_tapped(self) -> None:
        self.showing_sign_out_alert = True
        self._changed()

    def delete_account_tapped(self) -> None:
        self.showing_delete_alert = True
        self._changed()

    def handle_account_conversion_success(self) -> None:
        self._show_success("Account Linked", "Your progress has been saved to your new account!")

    async def sign_out(self) -> bool:
        """Sign out; returns True on success."""
        async with self._busy():
            try:
                await self._auth.sign_out()
            except ColdWaterError:
                self._show_error("Sign Out Failed", "There was a problem signing out")
                return False
        return True

    async def delete_account(self) -> bool:
        """Delete the account; returns True on success."""
        async with self._busy():
            try:
                await self._auth.delete_account()
            except ColdWaterError as e:
                self._show_error(
                    "Account Deletion Failed",
                    f"There was a problem deleting your account: {e.message}",
                )
                return False
        self._show_success("Account Deleted", "Your account has been successfully deleted.")
        return True

    def clear_alerts(self) -> None:
        self.showing_error_alert = False
        self.showing_success_alert = False
        self.showing_sign_out_alert = False
        self.showing_delete_alert = False
        self.alert_title = ""
        self.alert_message = ""
        self._changed()

    def _show_error(self, title: str, message: str) -> None:
        self.alert_title = title
        self.alert_message = message
        self.showing_error_alert = True
        self._changed()

    def _show_success(self, title: str, message: str) -> None:
        self.alert_title = title
        self.alert_message = message
        self.showing_success_alert = True
        self._changed()
