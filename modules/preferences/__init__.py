"""
Preferences module.

Keeps the user's wake-up schedule and challenge settings, persisted
locally with debounced writes and optionally mirrored to Supabase.

Public API:
- PreferenceStore: In-memory preferences with debounced local saves
- IPreferencesMirror / PreferencesRepository: Remote copy of preferences
- Preferences, Weekday, WakeUpMethod, MotivationMethod, Location: Models
"""

from .interfaces import IPreferencesMirror
from .models import (
    WEEKDAYS,
    WEEKENDS,
    Location,
    MotivationMethod,
    Preferences,
    PreferencesRow,
    WakeUpMethod,
    Weekday,
)
from .exceptions import PreferencesError, PreferencesDecodingError, PreferencesSyncError
from .codec import decode_preferences, encode_preferences
from .store import PreferenceStore
from .repository import PreferencesRepository

__all__ = [
    # Interfaces
    "IPreferencesMirror",
    # Models
    "WEEKDAYS",
    "WEEKENDS",
    "Location",
    "MotivationMethod",
    "Preferences",
    "PreferencesRow",
    "WakeUpMethod",
    "Weekday",
    # Codec
    "decode_preferences",
    "encode_preferences",
    # Services
    "PreferenceStore",
    "PreferencesRepository",
    # Exceptions
    "PreferencesError",
    "PreferencesDecodingError",
    "PreferencesSyncError",
]
