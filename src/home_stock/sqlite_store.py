"""SQLite-based key-value persistence for Home Stock.

This module provides SQLite storage as an alternative to JSON files.
It implements the same interface as FileKeyValueStore for seamless switching.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .data_store import check_key, encode_value
from .errors import PersistenceError


class SQLiteKeyValueStore:
    """Manages SQLite database persistence for snapshot and settings keys."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/home_stock.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "home_stock.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"SQLite error on {self.db_path}: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
            """)
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    def get(self, key: str) -> str | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        check_key(key)
        encode_value(key, value)
        with self._get_connection() as conn:
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def remove(self, key: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self, prefix: str = "") -> list[str]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT key FROM kv WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (escaped + "%",),
            ).fetchall()
        return [row[0] for row in rows if row[0].startswith(prefix)]
