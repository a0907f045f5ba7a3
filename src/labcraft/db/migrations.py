"""Schema of the labcraft database file and its forward-only migration runner.

Records live as JSON documents in one key-value table, so the schema is
small; versioning still goes through ``schema_version`` so later layouts
can be added without touching existing files by hand.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

_SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_KV_STORE_DDL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  DATETIME NOT NULL DEFAULT (datetime('now'))
);
"""

# Forward-only: never edit or renumber a shipped entry, append a new one.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _KV_STORE_DDL),
]


def current_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration version; 0 for a fresh file."""
    conn.execute(_SCHEMA_VERSION_DDL)
    (version,) = conn.execute(
        "SELECT COALESCE(MAX(version), 0) FROM schema_version"
    ).fetchone()
    return version


def run_migrations(conn: sqlite3.Connection) -> list[int]:
    """Apply pending migrations in ascending order.

    Safe to call on every start. Returns the versions applied by this call.
    """
    start = current_version(conn)
    conn.commit()

    applied: list[int] = []
    for version, ddl in sorted(MIGRATIONS):
        if version <= start:
            continue
        # executescript() commits any open transaction first.
        conn.executescript(ddl)
        conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        conn.commit()
        applied.append(version)
        logger.debug("Applied schema migration %d", version)
    return applied


def initialize(conn: sqlite3.Connection) -> None:
    """Bring the database file up to the latest schema."""
    run_migrations(conn)
