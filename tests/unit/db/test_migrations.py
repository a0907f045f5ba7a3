"""Tests for the forward-only migration runner."""

from __future__ import annotations

from labcraft.db.connection import Database
from labcraft.db.migrations import MIGRATIONS, current_version, initialize, run_migrations


def _fresh_conn(tmp_path):
    """Open a new connection without running migrations."""
    return Database(tmp_path / "test.db").connect()


def _table_exists(conn, name: str) -> bool:
    return conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
    ).fetchone() is not None


# --- Bootstrap ---

def test_run_migrations_creates_schema_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    assert _table_exists(conn, "schema_version")
    conn.close()


def test_run_migrations_records_version(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]
    assert version == MIGRATIONS[-1][0]
    conn.close()


def test_kv_store_table_created(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    assert _table_exists(conn, "kv_store")
    cols = {row["name"] for row in conn.execute("PRAGMA table_info(kv_store)")}
    assert cols == {"key", "value", "updated_at"}
    conn.close()


# --- Idempotency ---

def test_run_migrations_idempotent(tmp_path):
    conn = _fresh_conn(tmp_path)
    run_migrations(conn)
    run_migrations(conn)
    count = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
    assert count == len(MIGRATIONS)
    conn.close()


def test_existing_data_survives_rerun(tmp_path):
    conn = _fresh_conn(tmp_path)
    initialize(conn)
    conn.execute("INSERT INTO kv_store (key, value) VALUES ('k', '[]')")
    conn.commit()
    initialize(conn)
    assert conn.execute("SELECT value FROM kv_store WHERE key = 'k'").fetchone()[0] == "[]"
    conn.close()


def test_migration_versions_ascending():
    versions = [v for v, _ in MIGRATIONS]
    assert versions == sorted(versions)
    assert len(set(versions)) == len(versions)


# --- Versions ---

def test_current_version_fresh_file(tmp_path):
    conn = _fresh_conn(tmp_path)
    assert current_version(conn) == 0
    conn.close()


def test_run_migrations_reports_applied(tmp_path):
    conn = _fresh_conn(tmp_path)
    assert run_migrations(conn) == [v for v, _ in MIGRATIONS]
    assert run_migrations(conn) == []
    assert current_version(conn) == MIGRATIONS[-1][0]
    conn.close()
