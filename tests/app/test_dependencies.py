"""Tests for app/dependencies.py wiring."""

from datetime import time
from unittest.mock import MagicMock, patch

import pytest

from app.dependencies import ServiceContainer, get_container, reset_container
from modules.auth.memory_backend import InMemoryIdentityBackend
from modules.preferences.models import Weekday
from shared.config import Settings
from shared.storage import FileKeyValueStore


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        supabase_url="",
        supabase_anon_key="",
        local_storage_dir=str(tmp_path),
        preferences_save_delay=0.05,
    )


@pytest.fixture
def container(settings):
    container = ServiceContainer(settings)
    yield container
    container.reset()


class TestServiceContainer:
    def test_in_memory_backend_without_supabase(self, container):
        assert container.supabase_configured is False
        assert isinstance(container.backend, InMemoryIdentityBackend)
        assert container.mirror is None

    def test_services_are_cached(self, container):
        assert container.auth is container.auth
        assert container.session is container.session
        assert container.preferences is container.preferences

    def test_storage_uses_local_dir(self, container, tmp_path):
        assert isinstance(container.storage, FileKeyValueStore)
        assert container.storage.directory == tmp_path

    @pytest.mark.asyncio
    async def test_preferences_follow_session_identity(self, container):
        identity = await container.auth.sign_in_anonymously()
        assert container.preferences.identity_id == identity.id

        await container.auth.sign_out()
        assert container.preferences.identity_id is None

    @pytest.mark.asyncio
    async def test_sign_out_wipes_local_state(self, container, tmp_path):
        await container.auth.sign_in_anonymously()
        container.preferences.set_wake_up_time(Weekday.MONDAY, time(6, 0))
        container.preferences.flush()
        container.app_state.has_completed_onboarding = True

        await container.auth.sign_out()

        assert container.preferences.preferences.wake_up_times == {}
        assert container.app_state.has_completed_onboarding is False
        assert list(tmp_path.glob("*.json")) == []

    @pytest.mark.asyncio
    async def test_aclose_flushes_pending_save(self, container, tmp_path):
        container.preferences.set_step_goal(8000)
        assert container.preferences.has_unsaved_changes

        await container.aclose()

        assert (tmp_path / "user_preferences.json").exists()
        assert container.preferences.has_unsaved_changes is False

    def test_supabase_backend_when_configured(self, tmp_path):
        settings = Settings(
            _env_file=None,
            supabase_url="https://project.supabase.co",
            supabase_anon_key="anon-key",
            local_storage_dir=str(tmp_path),
        )
        container = ServiceContainer(settings)
        client = MagicMock()

        with patch("shared.database.get_supabase_client", return_value=client) as get_client, \
                patch("modules.auth.supabase_backend.SupabaseIdentityBackend") as backend_cls:
            backend = container.backend

        assert backend is backend_cls.return_value
        session_store = get_client.call_args.args[0]
        assert session_store.directory == tmp_path / "auth"
        backend_cls.assert_called_once_with(client, settings)

    def test_mirror_when_sync_enabled(self, tmp_path):
        settings = Settings(
            _env_file=None,
            supabase_url="https://project.supabase.co",
            supabase_anon_key="anon-key",
            local_storage_dir=str(tmp_path),
            enable_remote_sync=True,
            preferences_table="prefs",
        )
        container = ServiceContainer(settings)

        with patch("shared.database.get_supabase_client", return_value=MagicMock()):
            mirror = container.mirror

        assert mirror is not None
        assert mirror._table_name == "prefs"


class TestContainerSingleton:
    def test_get_container_is_cached(self):
        assert get_container() is get_container()

    def test_reset_container(self):
        first = get_container()
        reset_container()
        assert get_container() is not first
