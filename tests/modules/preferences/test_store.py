"""Tests for modules/preferences/store.py."""

import asyncio
import logging
from datetime import date, time, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from modules.preferences.codec import decode_preferences, encode_preferences
from modules.preferences.exceptions import PreferencesSyncError
from modules.preferences.models import (
    Location,
    MotivationMethod,
    Preferences,
    WakeUpMethod,
    Weekday,
)
from modules.preferences.store import PreferenceStore
from shared.exceptions import StorageError, ValidationError
from shared.storage import InMemoryKeyValueStore

SAVE_DELAY = 0.05


def make_mirror(remote=None) -> MagicMock:
    mirror = MagicMock()
    mirror.push = AsyncMock()
    mirror.pull = AsyncMock(return_value=remote)
    return mirror


class TestLoad:
    def test_empty_storage_gives_defaults(self, storage):
        store = PreferenceStore(storage)
        assert store.load() == Preferences()
        assert store.last_load_error is None

    def test_loads_saved_document(self, storage):
        saved = Preferences(step_goal=5000, everyday_time=time(6, 0))
        storage.set("user_preferences", encode_preferences(saved))

        store = PreferenceStore(storage)

        assert store.load() == saved
        assert store.preferences.step_goal == 5000

    def test_corrupt_document_falls_back_to_defaults(self, storage, caplog):
        storage.set("user_preferences", b"\x00garbage")
        store = PreferenceStore(storage)

        with caplog.at_level(logging.WARNING, logger="modules.preferences.store"):
            prefs = store.load()

        assert prefs == Preferences()
        assert store.last_load_error is not None
        assert store.last_load_error.code == "PREFERENCES_DECODING_ERROR"
        assert "Discarding stored preferences" in caplog.text

    def test_custom_key(self, storage):
        storage.set("other_key", encode_preferences(Preferences(step_goal=42)))
        assert PreferenceStore(storage, key="other_key").load().step_goal == 42


class TestSetters:
    def test_immediate_save_without_event_loop(self, storage):
        """Outside an event loop there is nothing to debounce on."""
        store = PreferenceStore(storage)

        store.set_step_goal(8000)

        assert storage.write_count == 1
        assert store.has_unsaved_changes is False
        assert decode_preferences(storage.get("user_preferences")).step_goal == 8000

    def test_every_setter(self, storage):
        store = PreferenceStore(storage)
        location = Location(latitude=10, longitude=20, geofence_radius=75, name="Office")

        store.set_wake_up_time(Weekday.MONDAY, time(5, 30))
        store.set_everyday_time(time(6, 0))
        store.set_weekdays_time(time(6, 30))
        store.set_weekends_time(time(9, 0))
        store.set_wake_up_method(WakeUpMethod.STEPS)
        store.set_step_goal(1200)
        store.set_location(location)
        store.set_grace_period(timedelta(minutes=3))
        store.set_motivation_method(MotivationMethod.PHONE)

        prefs = store.preferences
        assert prefs.wake_up_times == {Weekday.MONDAY: time(5, 30)}
        assert prefs.everyday_time == time(6, 0)
        assert prefs.weekdays_time == time(6, 30)
        assert prefs.weekends_time == time(9, 0)
        assert prefs.wake_up_method == WakeUpMethod.STEPS
        assert prefs.step_goal == 1200
        assert prefs.location == location
        assert prefs.grace_period == timedelta(minutes=3)
        assert prefs.motivation_method == MotivationMethod.PHONE

    def test_remove_wake_up_time(self, storage):
        store = PreferenceStore(storage)
        store.set_wake_up_time(Weekday.FRIDAY, time(5, 0))
        store.remove_wake_up_time(Weekday.FRIDAY)
        store.remove_wake_up_time(Weekday.SUNDAY)
        assert store.preferences.wake_up_times == {}

    def test_accepts_weekday_names(self, storage):
        store = PreferenceStore(storage)
        store.set_wake_up_time("Tuesday", time(7, 0))
        assert store.preferences.wake_up_times == {Weekday.TUESDAY: time(7, 0)}

    def test_invalid_value_rejected_without_saving(self, storage):
        store = PreferenceStore(storage)

        with pytest.raises(ValidationError):
            store.set_step_goal(0)

        assert storage.write_count == 0
        assert store.preferences.step_goal is None

    def test_preferences_property_is_a_copy(self, storage):
        store = PreferenceStore(storage)
        store.set_wake_up_time(Weekday.MONDAY, time(6, 0))

        copy = store.preferences
        copy.wake_up_times[Weekday.TUESDAY] = time(7, 0)

        assert Weekday.TUESDAY not in store.preferences.wake_up_times

    def test_effective_wake_up_time(self, storage):
        store = PreferenceStore(storage)
        store.set_weekends_time(time(10, 0))
        assert store.effective_wake_up_time(date(2024, 1, 6)) == time(10, 0)
        assert store.effective_wake_up_time(date(2024, 1, 8)) is None
        assert store.has_any_wake_up_time()


class TestDebounce:
    @pytest.mark.asyncio
    async def test_burst_of_edits_writes_once_with_final_state(self, preference_store, storage):
        """N setter calls inside the delay window produce exactly one write."""
        preference_store.set_step_goal(1000)
        preference_store.set_step_goal(2000)
        preference_store.set_wake_up_method(WakeUpMethod.STEPS)
        preference_store.set_everyday_time(time(6, 45))

        assert storage.write_count == 0
        assert preference_store.has_unsaved_changes

        await asyncio.sleep(SAVE_DELAY * 4)

        assert storage.write_count == 1
        assert preference_store.save_count == 1
        assert preference_store.has_unsaved_changes is False
        saved = decode_preferences(storage.get("user_preferences"))
        assert saved.step_goal == 2000
        assert saved.wake_up_method == WakeUpMethod.STEPS
        assert saved.everyday_time == time(6, 45)

    @pytest.mark.asyncio
    async def test_each_edit_restarts_the_delay(self, preference_store, storage):
        preference_store.set_step_goal(100)
        await asyncio.sleep(SAVE_DELAY * 0.6)
        preference_store.set_step_goal(200)
        await asyncio.sleep(SAVE_DELAY * 0.6)

        assert storage.write_count == 0

        await asyncio.sleep(SAVE_DELAY * 2)
        assert storage.write_count == 1

    @pytest.mark.asyncio
    async def test_flush_writes_now(self, preference_store, storage):
        preference_store.set_step_goal(3000)

        preference_store.flush()
        await asyncio.sleep(SAVE_DELAY * 3)

        assert storage.write_count == 1
        assert decode_preferences(storage.get("user_preferences")).step_goal == 3000

    @pytest.mark.asyncio
    async def test_reset_cancels_pending_save(self, preference_store, storage):
        preference_store.set_step_goal(3000)
        preference_store.flush()
        preference_store.set_step_goal(4000)

        preference_store.reset()
        await asyncio.sleep(SAVE_DELAY * 3)

        assert storage.get("user_preferences") is None
        assert preference_store.preferences == Preferences()
        assert storage.write_count == 1

    @pytest.mark.asyncio
    async def test_failed_timer_save_is_logged(self, caplog):
        storage = MagicMock()
        storage.set.side_effect = StorageError("disk full")
        store = PreferenceStore(storage, save_delay=SAVE_DELAY)

        with caplog.at_level(logging.ERROR, logger="modules.preferences.store"):
            store.set_step_goal(10)
            await asyncio.sleep(SAVE_DELAY * 3)

        assert "Debounced preference save failed: disk full" in caplog.text
        assert store.has_unsaved_changes is False


class TestReplace:
    def test_replace_copies_the_value(self, storage):
        store = PreferenceStore(storage)
        draft = Preferences(step_goal=9000)

        store.replace(draft)
        draft.step_goal = 1

        assert store.preferences.step_goal == 9000
        assert storage.write_count == 1


class TestMirror:
    @pytest.mark.asyncio
    async def test_write_pushes_to_mirror(self, storage):
        mirror = make_mirror()
        store = PreferenceStore(storage, save_delay=SAVE_DELAY, mirror=mirror, identity_id="uid-1")

        store.set_step_goal(8000)
        store.flush()
        await store.wait_for_sync()

        mirror.push.assert_awaited_once()
        identity_id, pushed = mirror.push.await_args.args
        assert identity_id == "uid-1"
        assert pushed.step_goal == 8000

    @pytest.mark.asyncio
    async def test_no_push_without_identity(self, storage):
        mirror = make_mirror()
        store = PreferenceStore(storage, mirror=mirror)

        store.set_step_goal(8000)
        store.flush()
        await store.wait_for_sync()

        mirror.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_push_failure_only_logged(self, storage, caplog):
        mirror = make_mirror()
        mirror.push.side_effect = PreferencesSyncError("offline")
        store = PreferenceStore(storage, mirror=mirror, identity_id="uid-1")

        with caplog.at_level(logging.WARNING, logger="modules.preferences.store"):
            store.set_step_goal(8000)
            store.flush()
            await store.wait_for_sync()

        assert "Preference sync failed" in caplog.text
        assert decode_preferences(storage.get("user_preferences")).step_goal == 8000

    @pytest.mark.asyncio
    async def test_identity_id_can_change(self, storage):
        mirror = make_mirror()
        store = PreferenceStore(storage, mirror=mirror)
        store.identity_id = "uid-2"

        store.flush()
        await store.wait_for_sync()

        assert mirror.push.await_args.args[0] == "uid-2"

    @pytest.mark.asyncio
    async def test_restore_from_mirror(self, storage):
        remote = Preferences(step_goal=7777)
        mirror = make_mirror(remote)
        store = PreferenceStore(storage, mirror=mirror, identity_id="uid-1")

        assert await store.restore_from_mirror() is True

        assert store.preferences == remote
        assert decode_preferences(storage.get("user_preferences")) == remote
        mirror.pull.assert_awaited_once_with("uid-1")
        mirror.push.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore_without_remote_copy(self, storage):
        store = PreferenceStore(storage, mirror=make_mirror(None), identity_id="uid-1")
        assert await store.restore_from_mirror() is False
        assert storage.write_count == 0

    @pytest.mark.asyncio
    async def test_restore_without_mirror(self):
        store = PreferenceStore(InMemoryKeyValueStore())
        assert await store.restore_from_mirror() is False
