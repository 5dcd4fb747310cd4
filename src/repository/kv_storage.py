"""
Key-Value Storage

Persistent string key-value store standing in for the browser's localStorage.
Every `set_item` is an immediate durable write; there is no batching and no locking
(concurrent writers get last-write-wins).
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """Minimal localStorage-like interface. Implementations raise on I/O failure."""

    @abstractmethod
    def get_item(self, key: str) -> str | None: ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None: ...

    @abstractmethod
    def remove_item(self, key: str) -> None: ...

    @abstractmethod
    def keys(self) -> list[str]: ...

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [key for key in self.keys() if key.startswith(prefix)]

    @property
    def storage_type(self) -> str:
        return self.__class__.__name__


class InMemoryKeyValueStorage(KeyValueStorage):
    """Process-local storage, used for tests and one-shot CLI runs"""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items.keys())


class SQLiteKeyValueStorage(KeyValueStorage):
    """Key-value storage persisted in a single SQLite table"""

    def __init__(self, db_path: str):
        """
        Initialize the storage.

        Args:
            db_path: Path to SQLite database file (parent directories are created)
        """
        self.db_path = Path(db_path)
        self._init_database()

    def _init_database(self):
        """Create the key-value table if it doesn't exist"""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """
                )
                conn.commit()
                logger.info(f"[KV] Initialized key-value storage at {self.db_path}")

        except Exception as e:
            logger.error(f"[KV] Failed to initialize database: {e}", exc_info=True)
            raise

    def get_item(self, key: str) -> str | None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """,
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()
        logger.debug(f"[KV] Wrote '{key}' ({len(value)} bytes)")

    def remove_item(self, key: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        logger.debug(f"[KV] Removed '{key}'")

    def keys(self) -> list[str]:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT key FROM kv_store ORDER BY key")
            return [row[0] for row in cursor.fetchall()]
