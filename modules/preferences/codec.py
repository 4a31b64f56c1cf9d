"""JSON encoding of the locally stored preferences document."""

from pydantic import ValidationError

from .exceptions import PreferencesDecodingError
from .models import Preferences


def encode_preferences(preferences: Preferences) -> bytes:
    return preferences.model_dump_json().encode("utf-8")


def decode_preferences(data: bytes) -> Preferences:
    """
    Decode a stored document.

    Raises:
        PreferencesDecodingError: malformed JSON or a schema violation
    """
    try:
        return Preferences.model_validate_json(data)
    except ValidationError as e:
        raise PreferencesDecodingError(f"{e.error_count()} invalid field(s)") from e
