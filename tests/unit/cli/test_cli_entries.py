"""Tests for labcraft entries commands."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from typer.testing import CliRunner

from labcraft.cli.main import app
from labcraft.db.connection import Database
from labcraft.db.kv import SqliteKeyValueStore
from labcraft.db.migrations import initialize
from labcraft.db.repository import Repository

runner = CliRunner()


def _open(db_path: Path) -> tuple[sqlite3.Connection, Repository]:
    conn = Database(db_path).connect()
    initialize(conn)
    return conn, Repository(SqliteKeyValueStore(conn))


def test_list(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(app, ["entries", "list", collection.id, "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Pendulum" in result.output


def test_list_unknown_collection(cli_env):
    result = runner.invoke(app, ["entries", "list", "nope", "--db", str(cli_env / "x.db")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_assigns_next_ordinal(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(
        app,
        ["entries", "add", collection.id, "Prism", "--aim", "Refraction", "-l", "python", "--db", str(db_path)],
    )
    assert result.exit_code == 0
    assert "Added entry 4" in result.output


def test_add_reads_code_file(seeded_db, tmp_path):
    db_path, collection, _ = seeded_db
    code = tmp_path / "ohm.py"
    code.write_text("print(10 / 2)\n", encoding="utf-8")
    runner.invoke(
        app,
        ["entries", "add", collection.id, "Code", "--code-file", str(code), "--db", str(db_path)],
    )
    conn, repo = _open(db_path)
    added = repo.list_entries_by_collection(collection.id)[-1]
    conn.close()
    assert added.code == "print(10 / 2)\n"


def test_add_missing_code_file(seeded_db, tmp_path):
    db_path, collection, _ = seeded_db
    result = runner.invoke(
        app,
        ["entries", "add", collection.id, "X", "--code-file", str(tmp_path / "nope.py"), "--db", str(db_path)],
    )
    assert result.exit_code == 1


def test_add_unknown_collection(cli_env):
    result = runner.invoke(app, ["entries", "add", "collection_missing", "Orphan", "--db", str(cli_env / "x.db")])
    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_bad_language(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(
        app, ["entries", "add", collection.id, "X", "--language", "cobol", "--db", str(db_path)]
    )
    assert result.exit_code == 1
    assert "Unsupported language" in result.output


def test_add_needs_title(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(app, ["entries", "add", collection.id, "--db", str(db_path)])
    assert result.exit_code == 1


def test_add_from_draft_publishes_and_clears(seeded_db):
    db_path, collection, _ = seeded_db
    runner.invoke(
        app,
        ["draft", "save", "--collection", collection.id, "--title", "From draft", "--aim", "Drafted aim", "--db", str(db_path)],
    )
    result = runner.invoke(app, ["entries", "add", collection.id, "--from-draft", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "From draft" in result.output

    conn, repo = _open(db_path)
    added = repo.list_entries_by_collection(collection.id)[-1]
    conn.close()
    assert (added.title, added.aim, added.ordinal) == ("From draft", "Drafted aim", 4)

    shown = runner.invoke(app, ["draft", "show", "--db", str(db_path)])
    assert "No saved draft" in shown.output


def test_add_from_draft_of_other_collection(seeded_db):
    db_path, collection, _ = seeded_db
    runner.invoke(app, ["draft", "save", "--collection", "collection_other", "--title", "T", "--db", str(db_path)])
    result = runner.invoke(app, ["entries", "add", collection.id, "--from-draft", "--db", str(db_path)])
    assert result.exit_code == 1
    assert "No saved draft" in result.output


def test_update(seeded_db):
    db_path, _, entries = seeded_db
    result = runner.invoke(
        app, ["entries", "update", entries[0].id, "--title", "Ohm revisited", "--db", str(db_path)]
    )
    assert result.exit_code == 0
    conn, repo = _open(db_path)
    assert repo.get_entry(entries[0].id).title == "Ohm revisited"
    conn.close()


def test_update_missing(cli_env):
    result = runner.invoke(app, ["entries", "update", "nope", "--title", "X", "--db", str(cli_env / "x.db")])
    assert result.exit_code == 1


def test_delete_keeps_other_ordinals(seeded_db):
    db_path, collection, entries = seeded_db
    result = runner.invoke(app, ["entries", "delete", entries[1].id, "--db", str(db_path)])
    assert result.exit_code == 0
    conn, repo = _open(db_path)
    ordinals = [e.ordinal for e in repo.list_entries_by_collection(collection.id)]
    conn.close()
    assert ordinals == [1, 3]


def test_reorder(seeded_db):
    db_path, collection, (a, b, c) = seeded_db
    result = runner.invoke(
        app, ["entries", "reorder", collection.id, b.id, a.id, c.id, "--db", str(db_path)]
    )
    assert result.exit_code == 0
    conn, repo = _open(db_path)
    order = [(e.id, e.ordinal) for e in repo.list_entries_by_collection(collection.id)]
    conn.close()
    assert order == [(b.id, 1), (a.id, 2), (c.id, 3)]


def test_reorder_reports_skipped(seeded_db):
    db_path, collection, (a, _, _) = seeded_db
    result = runner.invoke(
        app, ["entries", "reorder", collection.id, "ghost", a.id, "--db", str(db_path)]
    )
    assert result.exit_code == 0
    assert "skipped" in result.output


def test_search(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(app, ["entries", "search", collection.id, "harmonic", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "Pendulum" in result.output
    assert "Lens" not in result.output


def test_search_no_match(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(app, ["entries", "search", collection.id, "quantum", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "No entries match" in result.output


def test_add_and_list_title_with_markup_characters(seeded_db):
    db_path, collection, _ = seeded_db
    added = runner.invoke(app, ["entries", "add", collection.id, "Prism [/]", "--db", str(db_path)])
    assert added.exit_code == 0
    assert "Prism [/]" in added.output

    listed = runner.invoke(app, ["entries", "list", collection.id, "--db", str(db_path)])
    assert listed.exit_code == 0
    assert "Prism [/]" in listed.output


def test_search_query_with_markup_characters(seeded_db):
    db_path, collection, _ = seeded_db
    result = runner.invoke(app, ["entries", "search", collection.id, "[/red]", "--db", str(db_path)])
    assert result.exit_code == 0
    assert "No entries match '[/red]'" in result.output
