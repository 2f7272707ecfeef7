"""Canonical snapshot persistence and the backup ring."""

import json
import logging
import time
from collections.abc import Callable, Iterator

from .data_store import KeyValueStore
from .errors import PersistenceError
from .exchange import dump_snapshot, parse_snapshot
from .ids import now_iso
from .models import BackupEntry, Snapshot
from .settings import DeviceSettings

logger = logging.getLogger(__name__)

CANONICAL_KEY = "home-stock-data"
BACKUP_PREFIX = "home-stock-backup-"
BACKUP_INDEX_KEY = "home-stock-backups"
DEFAULT_BACKUP_LIMIT = 10


class BackupRing:
    """Fixed-capacity, key-ordered collection of serialized snapshots.

    Keys are BACKUP_PREFIX plus the creation time in epoch milliseconds, so
    lexicographic key order is chronological order. The ring keeps its own
    index of keys; it is rebuilt from the backend's key listing only when
    missing or unreadable.
    """

    def __init__(
        self,
        data_store: KeyValueStore,
        capacity: int = DEFAULT_BACKUP_LIMIT,
        prefix: str = BACKUP_PREFIX,
        index_key: str = BACKUP_INDEX_KEY,
    ):
        if capacity < 1:
            raise ValueError("Backup ring capacity must be at least 1")
        self.data_store = data_store
        self.capacity = capacity
        self.prefix = prefix
        self.index_key = index_key

    def _is_backup_key(self, key: str) -> bool:
        return key.startswith(self.prefix) and key[len(self.prefix):].isdigit()

    def _load_index(self) -> list[str]:
        raw = self.data_store.get(self.index_key)
        if raw is not None:
            try:
                keys = json.loads(raw)
            except json.JSONDecodeError:
                keys = None
            if isinstance(keys, list) and all(isinstance(k, str) for k in keys):
                return sorted(k for k in keys if self._is_backup_key(k))
            logger.warning("Backup index is unreadable, rebuilding it")
        return sorted(k for k in self.data_store.keys(self.prefix) if self._is_backup_key(k))

    def _save_index(self, keys: list[str]) -> None:
        self.data_store.set(self.index_key, json.dumps(sorted(keys)))

    def keys(self) -> list[str]:
        """Backup keys, oldest first."""
        return self._load_index()

    def __len__(self) -> int:
        return len(self._load_index())

    def __contains__(self, key: object) -> bool:
        return key in self._load_index()

    def __iter__(self) -> Iterator[BackupEntry]:
        return iter(self.entries())

    def entries(self) -> list[BackupEntry]:
        """Backups, newest first."""
        return [
            BackupEntry(key=key, timestamp=int(key[len(self.prefix):]))
            for key in reversed(self._load_index())
        ]

    def get(self, key: str) -> str | None:
        if key not in self._load_index():
            return None
        return self.data_store.get(key)

    def push(self, value: str, now_ms: int | None = None) -> str:
        """Store a new backup and evict the oldest ones beyond capacity.

        Raises:
            PersistenceError: If the backend write fails
        """
        keys = self._load_index()
        stamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
        key = f"{self.prefix}{stamp}"
        while key in keys or self.data_store.get(key) is not None:
            stamp += 1
            key = f"{self.prefix}{stamp}"

        self.data_store.set(key, value)
        keys.append(key)
        self._save_index(keys)
        self.trim()
        return key

    def trim(self) -> list[str]:
        """Evict backups beyond capacity, oldest key first.

        Returns:
            Evicted keys
        """
        keys = self._load_index()
        evicted: list[str] = []
        while len(keys) > self.capacity:
            oldest = keys.pop(0)
            self.data_store.remove(oldest)
            evicted.append(oldest)
        if evicted:
            self._save_index(keys)
            logger.debug("Evicted %d old backups", len(evicted))
        return evicted


class SnapshotStore:
    """Owns the canonical snapshot and its durable copy.

    Mutators change ``snapshot`` in place and then call save(). Import and
    restore replace it wholesale through replace().
    """

    def __init__(
        self,
        data_store: KeyValueStore,
        settings: DeviceSettings | None = None,
        backup_limit: int = DEFAULT_BACKUP_LIMIT,
        on_warning: Callable[[str], None] | None = None,
    ):
        """Initialize the store and load the canonical snapshot.

        Args:
            data_store: Key-value backend
            settings: Device settings consulted for the actor label
            backup_limit: Capacity of the backup ring
            on_warning: Called with a user-facing message when a save fails
        """
        self.data_store = data_store
        self.settings = settings or DeviceSettings(data_store)
        self.ring = BackupRing(data_store, capacity=backup_limit)
        self.on_warning = on_warning
        self.last_error: PersistenceError | None = None
        self.snapshot = Snapshot()
        self.load()

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self.on_warning is not None:
            self.on_warning(message)

    def load(self) -> Snapshot:
        """Load the canonical snapshot, falling back to a fresh default one.

        Stored data that fails validation is pushed into the backup ring
        before the fresh snapshot replaces it.

        Returns:
            The loaded snapshot, always usable
        """
        try:
            raw = self.data_store.get(CANONICAL_KEY)
        except PersistenceError as e:
            logger.warning("Could not read stored data: %s", e)
            raw = None

        if raw is not None:
            result = parse_snapshot(raw)
            if result:
                self.snapshot = result.unwrap()
                return self.snapshot
            self._set_aside(raw, result.error)

        self.snapshot = Snapshot()
        self.save()
        return self.snapshot

    def _set_aside(self, raw: str, error) -> str | None:
        """Keep unusable stored data in the backup ring before it is overwritten."""
        try:
            key = self.ring.push(raw)
        except PersistenceError as e:
            self._warn(f"Stored data is unusable ({error}) and could not be backed up: {e}")
            return None
        self._warn(f"Stored data is unusable ({error}), starting fresh; old data kept as {key}")
        return key

    def save(self) -> bool:
        """Stamp and persist the canonical snapshot.

        Returns:
            True if written, False if the write failed (the in-memory state
            stays usable but is not durable)
        """
        snapshot = self.snapshot
        snapshot.updated_at = now_iso()
        actor = self.settings.actor
        if actor:
            snapshot.updated_by = actor

        try:
            self.data_store.set(CANONICAL_KEY, dump_snapshot(snapshot))
        except PersistenceError as e:
            self.last_error = e
            self._warn(f"Saving failed, changes are not stored: {e}")
            return False

        self.last_error = None
        return True

    def replace(self, snapshot: Snapshot) -> bool:
        """Make another snapshot canonical and persist it."""
        self.snapshot = snapshot
        return self.save()

    def backup(self) -> str | None:
        """Copy the persisted canonical snapshot into the backup ring.

        Returns:
            The new backup key, or None if nothing is persisted yet or the
            write failed
        """
        try:
            raw = self.data_store.get(CANONICAL_KEY)
            if raw is None:
                return None
            key = self.ring.push(raw)
        except PersistenceError as e:
            logger.warning("Backup failed: %s", e)
            return None

        logger.info("Created backup %s", key)
        return key

    def trim_ring(self) -> list[str]:
        return self.ring.trim()

    def list_backups(self) -> list[BackupEntry]:
        return self.ring.entries()

    def restore(self, key: str) -> bool:
        """Replace the canonical snapshot with a backup.

        The current state is backed up first.

        Returns:
            False if the backup is missing or invalid, True otherwise
        """
        try:
            raw = self.ring.get(key)
        except PersistenceError as e:
            logger.warning("Could not read backup %s: %s", key, e)
            return False
        if raw is None:
            logger.warning("Backup %s not found", key)
            return False

        result = parse_snapshot(raw)
        if not result:
            logger.warning("Backup %s is invalid: %s", key, result.error)
            return False

        self.backup()
        self.replace(result.unwrap())
        logger.info("Restored backup %s", key)
        return True
