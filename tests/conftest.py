"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from labcraft.db.connection import Database
from labcraft.db.kv import MemoryKeyValueStore, SqliteKeyValueStore
from labcraft.db.migrations import initialize
from labcraft.db.repository import Repository
from labcraft.draft.scheduler import Scheduler, TimerHandle


class _ManualHandle(TimerHandle):
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Scheduler driven by advance() instead of wall-clock time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []
        self._timers: list[tuple[float, Callable[[], None], _ManualHandle]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle()
        self.delays.append(delay)
        self._timers.append((self.now + delay, callback, handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._timers if not h.cancelled)

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = sorted((t for t in self._timers if t[0] <= self.now), key=lambda t: t[0])
        self._timers = [t for t in self._timers if t[0] > self.now]
        for _, callback, handle in due:
            if not handle.cancelled:
                callback()


class FakeClock:
    """Returns a strictly increasing ISO timestamp on every call."""

    def __init__(self) -> None:
        self.ticks = 0

    def __call__(self) -> str:
        self.ticks += 1
        t = self.ticks
        return f"2024-01-01T{t // 3600:02d}:{t // 60 % 60:02d}:{t % 60:02d}+00:00"


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / "labcraft.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def sqlite_store(tmp_db):
    return SqliteKeyValueStore(tmp_db)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Run CLI commands in tmp_path, isolated from the user's config and env."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("labcraft.config._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml")
    monkeypatch.delenv("LABCRAFT_DATA_DIR", raising=False)
    monkeypatch.delenv("LABCRAFT_OWNER", raising=False)
    return tmp_path


@pytest.fixture
def seeded_db(cli_env):
    """Project DB with one collection holding three entries.

    Returns (db_path, collection, entries).
    """
    db_path = cli_env / "seeded.db"
    conn = Database(db_path).connect()
    initialize(conn)
    repo = Repository(SqliteKeyValueStore(conn))
    collection = repo.create_collection("Physics Lab", "Physics", "Year 1 practicals")
    entries = [
        repo.create_entry(collection.id, "Ohm's Law", aim="Verify V = IR", language="python"),
        repo.create_entry(collection.id, "Pendulum", theory="Simple harmonic motion"),
        repo.create_entry(collection.id, "Lens", conclusion="f = 15 cm"),
    ]
    conn.close()
    return db_path, collection, entries
