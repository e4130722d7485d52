"""
Key-Value Backends

Two media for the record store:
- InMemoryBackend: a dict, for tests and throwaway sessions
- JsonFileBackend: one UTF-8 file per key inside a data directory

Both enforce an optional per-value byte quota, the way a browser
profile's local storage rejects oversized writes.
"""

import errno
import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from expense_ledger.services.storage.interface import (
    KeyValueBackend,
    QuotaExceededError,
    StorageError,
    StorageUnavailableError,
)


logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


def _check_quota(key: str, value: str, max_bytes: Optional[int]) -> None:
    if max_bytes is None:
        return
    size = len(value.encode("utf-8"))
    if size > max_bytes:
        raise QuotaExceededError(
            f"Value for '{key}' is {size} bytes; quota is {max_bytes} bytes"
        )


class InMemoryBackend(KeyValueBackend):
    """
    Dict-backed backend.

    Set `fail_writes` to simulate a medium that rejects every write.
    """

    def __init__(self, max_bytes: Optional[int] = None):
        self._data: dict[str, str] = {}
        self.max_bytes = max_bytes
        self.fail_writes = False

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise StorageUnavailableError("Storage is not writable")
        _check_quota(key, value, self.max_bytes)
        self._data[key] = value

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise StorageUnavailableError("Storage is not writable")
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileBackend(KeyValueBackend):
    """
    File-per-key backend.

    Writes go to a temporary file in the same directory which then
    replaces the target with os.replace, so a reader never sees a
    half-written value.
    """

    def __init__(
        self,
        data_dir: Union[str, Path],
        max_bytes: Optional[int] = None,
        fsync: bool = True,
    ):
        self.data_dir = Path(data_dir)
        self.max_bytes = max_bytes
        self.fsync = fsync

    def path_for(self, key: str) -> Path:
        """Return the file that holds `key`."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        _check_quota(key, value, self.max_bytes)
        path = self.path_for(key)

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create data directory {self.data_dir}: {e}"
            ) from e

        temp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                prefix=f"{key}-",
                suffix=".tmp",
                dir=self.data_dir,
                delete=False,
            ) as tf:
                temp_name = tf.name
                tf.write(value.encode("utf-8"))
                tf.flush()
                if self.fsync:
                    os.fsync(tf.fileno())
            os.replace(temp_name, path)
        except OSError as e:
            if temp_name and os.path.exists(temp_name):
                try:
                    os.unlink(temp_name)
                except OSError:
                    logger.warning("temp_file_cleanup_failed", path=temp_name)
            if e.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)):
                raise QuotaExceededError(f"No space left to write {path}") from e
            raise StorageError(f"Failed to write {path}: {e}") from e

        logger.debug("storage_write_ok", key=key, path=str(path))

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
