"""SQLite connection layer for the per-project key-value file."""

from __future__ import annotations

import sqlite3
from pathlib import Path


class Database:
    """Opens the project's SQLite file.

    Args:
        db_path: Location of the database file. Missing parent directories
            are created on connect.
        timeout: Seconds to wait on a locked database before failing.
    """

    def __init__(self, db_path: Path | str, *, timeout: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> sqlite3.Connection:
        """Return a new connection with row access by column name and WAL journaling.

        The draft autosave timer may write through the same connection from
        its own thread, so same-thread checking is off; SqliteKeyValueStore
        serializes access.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, timeout=self.timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        return conn

    def __enter__(self) -> sqlite3.Connection:
        self._conn = self.connect()
        return self._conn

    def __exit__(self, *exc_info: object) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
