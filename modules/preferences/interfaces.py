"""
Preferences module interfaces.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import Preferences


@runtime_checkable
class IPreferencesMirror(Protocol):
    """
    Best-effort remote copy of a user's preferences.

    Local storage stays authoritative; the mirror only lets preferences
    follow an identity across installs.
    """

    async def push(self, identity_id: str, preferences: Preferences) -> None:
        """
        Store preferences for an identity, replacing any previous copy.

        Raises:
            PreferencesSyncError: if the remote rejects the write
        """
        ...

    async def pull(self, identity_id: str) -> Optional[Preferences]:
        """Fetch the remote copy, or None if there is none."""
        ...
