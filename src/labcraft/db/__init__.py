"""labcraft storage layer."""

from labcraft.db.connection import Database
from labcraft.db.kv import KeyValueStore, MemoryKeyValueStore, SqliteKeyValueStore
from labcraft.db.migrations import MIGRATIONS, current_version, initialize, run_migrations
from labcraft.db.repository import CollectionNotFoundError, Repository

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "current_version",
    "MIGRATIONS",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "Repository",
    "CollectionNotFoundError",
]
