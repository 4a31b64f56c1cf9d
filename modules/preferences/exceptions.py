"""
Preferences module exceptions.
"""

from shared.exceptions import ColdWaterError, ExternalServiceError


class PreferencesError(ColdWaterError):
    """Base exception for preference-related errors."""

    pass


class PreferencesDecodingError(PreferencesError):
    """Raised when the stored preferences document cannot be decoded."""

    def __init__(self, reason: str):
        super().__init__(
            f"Stored preferences are corrupt: {reason}",
            code="PREFERENCES_DECODING_ERROR",
            details={"reason": reason},
        )


class PreferencesSyncError(ExternalServiceError):
    """Raised when the remote preference mirror rejects a request."""

    def __init__(self, message: str):
        super().__init__(
            f"Preference sync failed: {message}",
            service="supabase",
            code="PREFERENCES_SYNC_ERROR",
        )
