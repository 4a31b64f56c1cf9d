"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and providing shared utilities for data operations.
"""

import asyncio
from typing import Any, Callable, TypeVar, Generic
from supabase import Client


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Supabase client access via self._db
    - Generic type parameter for model type hints
    - _run() to execute the synchronous client off the event loop

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class PreferencesRepository(BaseRepository[Preferences]):
            async def pull(self, identity_id: str) -> Optional[Preferences]:
                result = await self._run(
                    self._table().select("*").eq("firebase_uid", identity_id).execute
                )
                if not result.data:
                    return None
                return PreferencesRow(**result.data[0]).to_preferences()
    """

    def __init__(self, db: Client) -> None:
        """
        Initialize the repository with a Supabase client.

        Args:
            db: Supabase client instance for database operations.
        """
        self._db = db

    async def _run(self, call: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking client call in a worker thread."""
        return await asyncio.to_thread(call, *args)
