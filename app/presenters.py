"""
Terminal stand-ins for platform sign-in dialogs.

A terminal has no system Sign in with Apple sheet, so the user completes
the authorization elsewhere (with the printed nonce) and pastes the
resulting identity token.
"""

import asyncio

from rich.console import Console
from rich.prompt import Prompt

from modules.auth.exceptions import UserCancelledError
from modules.auth.providers import AppleAuthorization, AppleAuthorizationRequest


class TerminalApplePresenter:
    """Prompts for an Apple identity token bound to the request's nonce."""

    def __init__(self, console: Console):
        self._console = console

    async def __call__(self, request: AppleAuthorizationRequest) -> AppleAuthorization:
        self._console.print("[bold]Sign in with Apple[/bold]")
        self._console.print(f"Scopes: {', '.join(request.scopes)}")
        self._console.print(f"Nonce: [cyan]{request.nonce}[/cyan]")

        token = await asyncio.to_thread(
            Prompt.ask,
            "Identity token (leave empty to cancel)",
            console=self._console,
            default="",
            show_default=False,
        )
        token = token.strip()
        if not token:
            raise UserCancelledError("Apple")
        return AppleAuthorization(identity_token=token)
