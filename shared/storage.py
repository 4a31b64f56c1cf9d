"""
Local key/value persistence.

Each key holds one opaque byte document. The file-backed store keeps one
file per key under a single directory, so clearing the store wipes every
piece of locally cached state at once (used on sign-out).
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .exceptions import StorageError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class IKeyValueStore(Protocol):
    """Byte-oriented key/value storage."""

    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes for key, or None if absent."""
        ...

    def set(self, key: str, data: bytes) -> None:
        """Store bytes under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Remove key. Removing a missing key is a no-op."""
        ...

    def clear(self) -> None:
        """Remove every key."""
        ...


def _check_key(key: str) -> str:
    if not _KEY_PATTERN.match(key) or key in (".", ".."):
        raise StorageError(f"Invalid storage key: {key!r}", code="INVALID_KEY")
    return key


class InMemoryKeyValueStore:
    """Dictionary-backed store for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self.write_count = 0

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(_check_key(key))

    def set(self, key: str, data: bytes) -> None:
        self._data[_check_key(key)] = bytes(data)
        self.write_count += 1

    def remove(self, key: str) -> None:
        self._data.pop(_check_key(key), None)

    def clear(self) -> None:
        self._data.clear()

    def keys(self) -> list[str]:
        return sorted(self._data)


class FileKeyValueStore:
    """
    File-backed store, one file per key.

    Writes go to a temporary file in the same directory and are moved
    into place, so a reader never observes a half-written document.
    """

    SUFFIX = ".json"

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path(self, key: str) -> Path:
        return self._dir / f"{_check_key(key)}{self.SUFFIX}"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(
                f"Failed to read {path}: {e}", code="STORAGE_READ_FAILED"
            ) from e

    def set(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=f".{key}.")
            try:
                with os.fdopen(fd, "wb") as fh:
                    fh.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(
                f"Failed to write {path}: {e}", code="STORAGE_WRITE_FAILED"
            ) from e
        logger.debug(f"Wrote {len(data)} bytes to {path}")

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to remove {path}: {e}", code="STORAGE_REMOVE_FAILED"
            ) from e

    def clear(self) -> None:
        if not self._dir.exists():
            return
        try:
            for path in self._dir.glob(f"*{self.SUFFIX}"):
                path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to clear {self._dir}: {e}", code="STORAGE_CLEAR_FAILED"
            ) from e
        logger.debug(f"Cleared local storage at {self._dir}")


class LocalStateReset:
    """Resettable that wipes a whole store."""

    def __init__(self, storage: IKeyValueStore) -> None:
        self._storage = storage

    def reset(self) -> None:
        self._storage.clear()
