"""
Preference store.

Holds one Preferences value in memory. Every setter mutates it
synchronously and re-arms a single save timer, so a burst of edits
produces one write carrying the state after the last edit.
"""

import asyncio
import logging
from datetime import date, time, timedelta
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from shared.exceptions import ColdWaterError, StorageError, ValidationError
from shared.storage import IKeyValueStore

from .codec import decode_preferences, encode_preferences
from .exceptions import PreferencesDecodingError
from .interfaces import IPreferencesMirror
from .models import Location, MotivationMethod, Preferences, WakeUpMethod, Weekday

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "user_preferences"
DEFAULT_SAVE_DELAY = 2.0


class PreferenceStore:
    """
    Local-first preference store with debounced persistence.

    When a mirror and an identity id are set, each completed local write
    is also pushed to the mirror in the background. Mirror failures are
    logged and otherwise ignored.
    """

    def __init__(
        self,
        storage: IKeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        save_delay: float = DEFAULT_SAVE_DELAY,
        mirror: Optional[IPreferencesMirror] = None,
        identity_id: Optional[str] = None,
    ):
        self._storage = storage
        self._key = key
        self._save_delay = save_delay
        self._mirror = mirror
        self._identity_id = identity_id

        self._preferences = Preferences()
        self._pending: Optional[asyncio.TimerHandle] = None
        self._sync_tasks: set[asyncio.Task] = set()
        self._save_count = 0
        self._last_load_error: Optional[PreferencesDecodingError] = None

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def preferences(self) -> Preferences:
        """A copy of the current in-memory preferences."""
        return self._preferences.model_copy(deep=True)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._pending is not None

    @property
    def save_count(self) -> int:
        """Number of writes to local storage since construction."""
        return self._save_count

    @property
    def last_load_error(self) -> Optional[PreferencesDecodingError]:
        """The decoding error swallowed by the last load(), if any."""
        return self._last_load_error

    @property
    def identity_id(self) -> Optional[str]:
        return self._identity_id

    @identity_id.setter
    def identity_id(self, value: Optional[str]) -> None:
        self._identity_id = value

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> Preferences:
        """
        Load preferences from local storage.

        A missing document yields defaults. A corrupt one also yields
        defaults; the decoding error is logged and kept in last_load_error.
        """
        self._last_load_error = None
        data = self._storage.get(self._key)
        if data is None:
            self._preferences = Preferences()
            logger.debug("No stored preferences; using defaults")
            return self.preferences

        try:
            self._preferences = decode_preferences(data)
        except PreferencesDecodingError as e:
            self._last_load_error = e
            self._preferences = Preferences()
            logger.warning(f"Discarding stored preferences: {e.message}")
        return self.preferences

    async def restore_from_mirror(self) -> bool:
        """
        Replace local preferences with the mirror's copy, if there is one.

        Returns True when a remote copy was found and saved locally.
        """
        if self._mirror is None or self._identity_id is None:
            return False

        remote = await self._mirror.pull(self._identity_id)
        if remote is None:
            return False

        self._cancel_pending()
        self._preferences = remote
        self._write(push=False)
        logger.info("Restored preferences from remote mirror")
        return True

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def set_wake_up_time(self, weekday: Weekday, wake_up_time: time) -> None:
        times = dict(self._preferences.wake_up_times)
        times[Weekday(weekday)] = wake_up_time
        self._update(wake_up_times=times)

    def remove_wake_up_time(self, weekday: Weekday) -> None:
        times = dict(self._preferences.wake_up_times)
        times.pop(Weekday(weekday), None)
        self._update(wake_up_times=times)

    def set_everyday_time(self, value: Optional[time]) -> None:
        self._update(everyday_time=value)

    def set_weekdays_time(self, value: Optional[time]) -> None:
        self._update(weekdays_time=value)

    def set_weekends_time(self, value: Optional[time]) -> None:
        self._update(weekends_time=value)

    def set_wake_up_method(self, method: Optional[WakeUpMethod]) -> None:
        self._update(wake_up_method=method)

    def set_step_goal(self, goal: Optional[int]) -> None:
        self._update(step_goal=goal)

    def set_location(self, location: Optional[Location]) -> None:
        self._update(location=location)

    def set_grace_period(self, period: Optional[timedelta]) -> None:
        self._update(grace_period=period)

    def set_motivation_method(self, method: Optional[MotivationMethod]) -> None:
        self._update(motivation_method=method)

    def replace(self, preferences: Preferences) -> None:
        """Swap in a whole Preferences value."""
        self._preferences = preferences.model_copy(deep=True)
        self._schedule_save()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def effective_wake_up_time(self, day: Optional[date] = None) -> Optional[time]:
        """Wake-up time for the given day (today if omitted)."""
        return self._preferences.effective_wake_up_time(day or date.today())

    def has_any_wake_up_time(self) -> bool:
        return self._preferences.has_any_wake_up_time()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def flush(self) -> None:
        """Write the current state now, cancelling any pending save."""
        self._cancel_pending()
        self._write()

    async def wait_for_sync(self) -> None:
        """Wait for background mirror pushes started so far."""
        if self._sync_tasks:
            await asyncio.gather(*list(self._sync_tasks))

    def reset(self) -> None:
        """Drop pending saves, restore defaults and delete the stored copy."""
        self._cancel_pending()
        self._preferences = Preferences()
        self._last_load_error = None
        self._storage.remove(self._key)
        logger.debug("Preferences reset")

    def _update(self, **changes: Any) -> None:
        try:
            for field, value in changes.items():
                setattr(self._preferences, field, value)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid preference value: {e.errors()[0]['msg']}",
                details={"fields": list(changes)},
            ) from e
        self._schedule_save()

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to debounce on
            self._write()
            return

        self._cancel_pending()
        self._pending = loop.call_later(self._save_delay, self._save_from_timer)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _save_from_timer(self) -> None:
        self._pending = None
        try:
            self._write()
        except StorageError as e:
            logger.error(f"Debounced preference save failed: {e.message}")

    def _write(self, push: bool = True) -> None:
        self._storage.set(self._key, encode_preferences(self._preferences))
        self._save_count += 1
        logger.debug(f"Preferences saved ({self._save_count})")
        if push:
            self._push_to_mirror(self.preferences)

    def _push_to_mirror(self, snapshot: Preferences) -> None:
        if self._mirror is None or self._identity_id is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; skipping preference sync")
            return

        task = loop.create_task(self._push(self._identity_id, snapshot))
        self._sync_tasks.add(task)
        task.add_done_callback(self._sync_tasks.discard)

    async def _push(self, identity_id: str, snapshot: Preferences) -> None:
        try:
            await self._mirror.push(identity_id, snapshot)
        except ColdWaterError as e:
            logger.warning(f"Preference sync failed: {e.message}")
