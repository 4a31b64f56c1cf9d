"""
Preferences repository for Supabase data access.

Mirrors the preference document into the user_preferences table, one
row per identity keyed by firebase_uid.
"""

import logging
from typing import Any, Callable, Optional

import httpx
from postgrest.exceptions import APIError
from pydantic import ValidationError
from supabase import Client

from shared.repository import BaseRepository

from .exceptions import PreferencesSyncError
from .models import Preferences, PreferencesRow

logger = logging.getLogger(__name__)


class PreferencesRepository(BaseRepository[Preferences]):
    """
    Repository for the user_preferences table.

    Handles:
    - Upserting the flattened row for an identity
    - Reading it back into a Preferences model
    """

    def __init__(self, db: Client, table: str = "user_preferences"):
        super().__init__(db)
        self._table_name = table

    def _table(self):
        return self._db.table(self._table_name)

    async def push(self, identity_id: str, preferences: Preferences) -> None:
        row = PreferencesRow.from_preferences(identity_id, preferences)
        await self._execute(
            self._table().upsert(row.to_record(), on_conflict="firebase_uid").execute
        )
        logger.debug(f"Pushed preferences for {identity_id}")

    async def pull(self, identity_id: str) -> Optional[Preferences]:
        result = await self._execute(
            self._table().select("*").eq("firebase_uid", identity_id).limit(1).execute
        )
        if not result.data:
            return None
        try:
            return PreferencesRow(**result.data[0]).to_preferences()
        except ValidationError as e:
            raise PreferencesSyncError(
                f"remote row for {identity_id} is invalid ({e.error_count()} error(s))"
            ) from e

    async def _execute(self, call: Callable[[], Any]) -> Any:
        try:
            return await self._run(call)
        except APIError as e:
            raise PreferencesSyncError(e.message or str(e)) from e
        except httpx.HTTPError as e:
            raise PreferencesSyncError(str(e) or type(e).__name__) from e
