"""Shared wiring for CLI commands: config, database, stores."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console

from labcraft.assets.store import AssetStore
from labcraft.cli.errors import err_config, err_read_only
from labcraft.config import ConfigError, LabcraftConfig, load_config
from labcraft.db.connection import Database
from labcraft.db.kv import SqliteKeyValueStore
from labcraft.db.migrations import initialize
from labcraft.db.repository import Repository
from labcraft.session import SessionStore

console = Console()


@dataclass
class Workspace:
    cfg: LabcraftConfig
    conn: sqlite3.Connection
    store: SqliteKeyValueStore
    repo: Repository
    assets: AssetStore
    sessions: SessionStore

    def require_edit(self) -> None:
        """Exit 1 when a signed-in viewer tries to modify data."""
        session = self.sessions.current()
        if session is not None and not session.can_edit:
            console.print(err_read_only(session.email))
            raise typer.Exit(1)


def load_cfg() -> LabcraftConfig:
    try:
        return load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


@contextmanager
def open_workspace(db: Path | None = None) -> Iterator[Workspace]:
    """Open the project database and build the stores on top of it."""
    cfg = load_cfg()
    db_path = db if db is not None else cfg.storage.db_path
    conn = Database(db_path).connect()
    try:
        initialize(conn)
        store = SqliteKeyValueStore(conn, prefix=cfg.storage.prefix)
        sessions = SessionStore(store)
        yield Workspace(
            cfg=cfg,
            conn=conn,
            store=store,
            repo=Repository(store, default_owner=sessions.owner(cfg.session.owner)),
            assets=AssetStore(store, max_width=cfg.assets.max_width, quality=cfg.assets.quality),
            sessions=sessions,
        )
    finally:
        conn.close()
