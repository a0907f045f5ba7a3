"""Tests for the Database connection layer."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from labcraft.db.connection import Database


def test_connect_creates_file(tmp_path):
    db_path = tmp_path / "labcraft.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_connect_creates_parent_dir(tmp_path):
    db_path = tmp_path / ".labcraft" / "nested" / "labcraft.db"
    conn = Database(db_path).connect()
    conn.close()
    assert db_path.exists()


def test_wal_journal_mode(tmp_path):
    conn = Database(tmp_path / "labcraft.db").connect()
    mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
    conn.close()
    assert mode == "wal"


def test_row_factory_set(tmp_path):
    conn = Database(tmp_path / "labcraft.db").connect()
    conn.execute("CREATE TABLE t (x INTEGER)")
    conn.execute("INSERT INTO t VALUES (42)")
    row = conn.execute("SELECT x FROM t").fetchone()
    conn.close()
    assert row["x"] == 42


def test_connection_usable_from_other_thread(tmp_path):
    conn = Database(tmp_path / "labcraft.db").connect()
    errors: list[Exception] = []

    def work():
        try:
            conn.execute("SELECT 1").fetchone()
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)

    t = threading.Thread(target=work)
    t.start()
    t.join()
    conn.close()
    assert errors == []


def test_context_manager_closes_connection(tmp_path):
    db = Database(tmp_path / "labcraft.db")
    with db as conn:
        conn.execute("CREATE TABLE t (x INTEGER)")
    with pytest.raises(Exception):
        conn.execute("SELECT 1")


def test_context_manager_accepts_path_str(tmp_path):
    db = Database(str(tmp_path / "labcraft.db"))
    assert isinstance(db.db_path, Path)
    with db as conn:
        result = conn.execute("SELECT 1").fetchone()[0]
    assert result == 1


def test_timeout_is_configurable(tmp_path):
    db = Database(tmp_path / "labcraft.db", timeout=0.5)
    assert db.timeout == 0.5
    with db as conn:
        assert conn.execute("SELECT 1").fetchone()[0] == 1
