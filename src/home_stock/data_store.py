"""Key-value persistence for Home Stock.

The engine persists everything through a small synchronous key-value
interface: one canonical snapshot key, the backup ring keys and the device
settings keys. Use create_data_store() to get the backend named in the
configuration.
"""

import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Protocol

from .errors import PersistenceError, StorageQuotaError

logger = logging.getLogger(__name__)

DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"
    MEMORY = "memory"


class KeyValueStore(Protocol):
    """Protocol defining the persistence boundary."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...
    def keys(self, prefix: str = "") -> list[str]: ...


def check_key(key: str) -> str:
    """Validate a storage key.

    Raises:
        ValueError: If the key contains characters unsafe for file names
    """
    if not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


def encode_value(key: str, value: str) -> bytes:
    """UTF-8 bytes of a value about to be stored.

    Raises:
        PersistenceError: If the value holds text UTF-8 cannot represent
    """
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PersistenceError(f"Value for '{key}' is not valid UTF-8: {e}") from e


def _check_quota(key: str, current_total: int, old_size: int, new_size: int, quota: int | None):
    if quota is None:
        return
    needed = current_total - old_size + new_size
    if needed > quota:
        raise StorageQuotaError(key, needed, quota)


class MemoryKeyValueStore:
    """In-process store, mainly for tests and throwaway sessions."""

    def __init__(self, quota_bytes: int | None = DEFAULT_QUOTA_BYTES):
        self.quota_bytes = quota_bytes
        self._data: dict[str, str] = {}

    def _size(self) -> int:
        return sum(len(value.encode("utf-8")) for value in self._data.values())

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        check_key(key)
        old = self._data.get(key)
        old_size = len(old.encode("utf-8")) if old is not None else 0
        _check_quota(key, self._size(), old_size, len(encode_value(key, value)), self.quota_bytes)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(key for key in self._data if key.startswith(prefix))


class FileKeyValueStore:
    """Stores each key as a JSON file in the data directory."""

    def __init__(self, data_dir: Path | None = None, quota_bytes: int | None = DEFAULT_QUOTA_BYTES):
        """Initialize file store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
            quota_bytes: Total size limit across all keys, None for unlimited
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self.quota_bytes = quota_bytes
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        """Path to the file holding a key."""
        return self.data_dir / f"{check_key(key)}.json"

    def _size(self) -> int:
        return sum(path.stat().st_size for path in self.data_dir.glob("*.json"))

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        encoded = encode_value(key, value)
        try:
            old_size = path.stat().st_size if path.exists() else 0
            _check_quota(key, self._size(), old_size, len(encoded), self.quota_bytes)
            tmp_path = path.with_name(f".{path.name}.tmp")
            with open(tmp_path, "wb") as f:
                f.write(encoded)
            os.replace(tmp_path, path)
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}") from e

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Could not remove {path}: {e}") from e

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(
            path.stem for path in self.data_dir.glob("*.json") if path.stem.startswith(prefix)
        )


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
    quota_bytes: int | None = DEFAULT_QUOTA_BYTES,
) -> KeyValueStore:
    """Create a key-value store with the specified backend.

    Args:
        backend: Which backend to use (json, sqlite or memory)
        data_dir: Directory for data files (used by the JSON backend, also
                  used as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)
        quota_bytes: Total size limit enforced by the JSON and memory backends

    Returns:
        A FileKeyValueStore, SQLiteKeyValueStore or MemoryKeyValueStore

    Example:
        # JSON files under ./data (default)
        store = create_data_store()

        # SQLite with custom path
        store = create_data_store(
            BackendType.SQLITE,
            db_path=Path("./my_data/home_stock.db")
        )
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteKeyValueStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "home_stock.db"

        return SQLiteKeyValueStore(db_path=db_path)
    if backend == BackendType.MEMORY:
        return MemoryKeyValueStore(quota_bytes=quota_bytes)
    return FileKeyValueStore(data_dir=data_dir, quota_bytes=quota_bytes)
