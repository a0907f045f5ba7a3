"""Tests for labcraft rich error messages."""

from __future__ import annotations

from io import StringIO

from rich.console import Console

from labcraft.cli.errors import (
    err_collection_not_found,
    err_config,
    err_entry_not_found,
    err_export_failed,
    err_no_uploads,
    err_read_only,
    warn_orphaned_assets,
)


def test_collection_not_found_suggests_list():
    msg = err_collection_not_found("collection_1")
    assert "collection_1" in msg
    assert "labcraft collections list" in msg


def test_entry_not_found_suggests_list():
    assert "labcraft entries list" in err_entry_not_found("entry_1")


def test_config_error_names_files():
    msg = err_config("bad value")
    assert "bad value" in msg
    assert "labcraft.yaml" in msg


def test_no_uploads_with_and_without_files():
    assert "No files given" in err_no_uploads(0)
    assert "3 file(s)" in err_no_uploads(3)


def test_export_failed_points_to_verbose():
    assert "--verbose" in err_export_failed("Ohm")


def test_read_only_names_account():
    assert "viewer@example.com" in err_read_only("viewer@example.com")


def test_orphaned_assets_suggests_purge():
    msg = warn_orphaned_assets("collection_1", 2)
    assert "2 asset(s)" in msg
    assert "labcraft assets purge collection_1" in msg


def test_user_text_is_escaped():
    console = Console(file=StringIO(), width=120)
    console.print(err_collection_not_found("[/]oops"))
    console.print(err_read_only("[bold]x@example.com"))
    out = console.file.getvalue()
    assert "'[/]oops'" in out
    assert "'[bold]x@example.com'" in out
