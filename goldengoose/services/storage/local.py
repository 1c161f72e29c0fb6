"""
Local Key-Value Stores

FileLocalStore keeps one file per key in a data directory. Writes go to a
temporary file in the same directory which then replaces the target with
os.replace, so a crash mid-write leaves the previous value intact rather
than a truncated document.

InMemoryLocalStore is a dict, for tests and throwaway sessions.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

import structlog

from goldengoose.services.storage.interface import LocalStoreInterface, StorageError


logger = structlog.get_logger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileLocalStore(LocalStoreInterface):
    """One file per key under a directory."""

    def __init__(self, data_dir: Union[str, Path], fsync_after_write: bool = True):
        self._data_dir = Path(data_dir).expanduser()
        self._fsync_after_write = fsync_after_write

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def read(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def write(self, key: str, value: bytes) -> None:
        path = self._path_for(key)
        temp_name: Optional[str] = None
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb",
                prefix=path.name + "-",
                suffix=".tmp",
                dir=self._data_dir,
                delete=False,
            ) as tf:
                temp_name = tf.name
                tf.write(value)
                tf.flush()
                if self._fsync_after_write:
                    os.fsync(tf.fileno())

            os.replace(temp_name, path)
            temp_name = None
            logger.debug("local_write_complete", key=key, size=len(value))
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")
        finally:
            if temp_name and os.path.exists(temp_name):
                os.unlink(temp_name)

    def delete(self, key: str) -> bool:
        path = self._path_for(key)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}")


class InMemoryLocalStore(LocalStoreInterface):
    """Dict-backed store."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._values: dict[str, bytes] = dict(initial or {})

    def read(self, key: str) -> Optional[bytes]:
        return self._values.get(key)

    def write(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    def delete(self, key: str) -> bool:
        return self._values.pop(key, None) is not None
