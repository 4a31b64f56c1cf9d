"""Persisted app-level flags."""

import json

from shared.storage import IKeyValueStore

ONBOARDING_KEY = "has_completed_onboarding"


class AppState:
    """Whether onboarding has been completed, kept in local storage."""

    def __init__(self, storage: IKeyValueStore):
        self._storage = storage

    @property
    def has_completed_onboarding(self) -> bool:
        data = self._storage.get(ONBOARDING_KEY)
        if data is None:
            return False
        try:
            return json.loads(data) is True
        except ValueError:
            return False

    @has_completed_onboarding.setter
    def has_completed_onboarding(self, value: bool) -> None:
        self._storage.set(ONBOARDING_KEY, json.dumps(bool(value)).encode("utf-8"))

    def reset(self) -> None:
        self._storage.remove(ONBOARDING_KEY)
