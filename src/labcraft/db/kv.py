"""Namespaced key-value substrate.

Every higher-level component persists through a ``KeyValueStore``. Values are
JSON documents; namespaces such as ``collections`` hold a list of records and
singleton keys such as ``draft`` hold a single object.

Reads never raise: a missing key reads as empty and a malformed value is
logged and treated as empty. Writes always replace the whole value, there are
no partial updates and no transactions.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "practical_manual_"

# Namespaces (sequence-valued)
COLLECTIONS = "collections"
ENTRIES = "entries"
IMAGES = "images"

# Singleton keys
DRAFT = "draft"
THEME = "theme"
SESSION = "session"


class KeyValueStore(ABC):
    """Abstract string-keyed store with JSON (de)serialization helpers.

    Subclasses implement the raw string operations; the typed helpers below
    are shared.
    """

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        self.prefix = prefix

    @abstractmethod
    def get_raw(self, key: str) -> str | None:
        """Return the stored string for *key*, or None if absent."""

    @abstractmethod
    def set_raw(self, key: str, value: str) -> None:
        """Store *value* under *key*, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete *key*. Removing a missing key is a no-op."""

    # ------------------------------------------------------------------
    # Sequence namespaces
    # ------------------------------------------------------------------

    def get(self, namespace: str) -> list[dict[str, Any]]:
        """Return the record list stored in *namespace*.

        Missing namespace → ``[]``. Malformed JSON or a non-list value is
        logged and also read as ``[]``; the bad value is replaced on the next
        ``set()``.
        """
        raw = self.get_raw(namespace)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Discarding malformed data in namespace '%s'", namespace)
            return []
        if not isinstance(data, list):
            logger.warning("Namespace '%s' does not hold a list, treated as empty", namespace)
            return []
        return data

    def set(self, namespace: str, records: list[dict[str, Any]]) -> None:
        """Serialize and store the whole *records* sequence."""
        self.set_raw(namespace, json.dumps(list(records), ensure_ascii=False))

    # ------------------------------------------------------------------
    # Singleton keys
    # ------------------------------------------------------------------

    def get_value(self, key: str) -> Any | None:
        """Return the decoded value under *key*, or None if absent or malformed."""
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring malformed value under key '%s'", key)
            return None

    def set_value(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value, ensure_ascii=False))


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Nothing is persisted beyond the process."""

    def __init__(self, prefix: str = DEFAULT_PREFIX) -> None:
        super().__init__(prefix)
        self._data: dict[str, str] = {}

    def get_raw(self, key: str) -> str | None:
        return self._data.get(self.prefix + key)

    def set_raw(self, key: str, value: str) -> None:
        self._data[self.prefix + key] = value

    def remove(self, key: str) -> None:
        self._data.pop(self.prefix + key, None)


class SqliteKeyValueStore(KeyValueStore):
    """Store backed by the ``kv_store`` table of an open SQLite connection.

    The connection is owned by the caller and must be closed after use.
    Access is serialized with a lock so the draft autosave timer thread can
    write safely.
    """

    def __init__(self, conn: sqlite3.Connection, prefix: str = DEFAULT_PREFIX) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with the schema initialised
                (see labcraft.db.migrations.initialize).
            prefix: String prepended to every key.
        """
        super().__init__(prefix)
        self._conn = conn
        self._lock = threading.Lock()

    def get_raw(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (self.prefix + key,)
            ).fetchone()
        return row["value"] if row else None

    def set_raw(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO kv_store (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = datetime('now')
                """,
                (self.prefix + key, value),
            )
            self._conn.commit()

    def remove(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv_store WHERE key = ?", (self.prefix + key,))
            self._conn.commit()
