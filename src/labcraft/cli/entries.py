"""labcraft entries CLI commands.

Commands:
  labcraft entries list COLLECTION_ID
  labcraft entries add COLLECTION_ID TITLE [--aim ...] [--from-draft]
  labcraft entries update ENTRY_ID [--title ...]
  labcraft entries delete ENTRY_ID
  labcraft entries reorder COLLECTION_ID ID [ID ...]
  labcraft entries search COLLECTION_ID QUERY
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.markup import escape
from rich.table import Table

from labcraft.cli.collections import DbOption
from labcraft.cli.context import console, open_workspace
from labcraft.cli.errors import (
    err_collection_not_found,
    err_entry_not_found,
    err_file_not_found,
    err_invalid_value,
)
from labcraft.db.models import Entry
from labcraft.db.repository import CollectionNotFoundError
from labcraft.draft.autosave import DraftAutosave
from labcraft.draft.scheduler import ThreadingScheduler

entries_app = typer.Typer(
    name="entries",
    help="Manage the numbered entries of a collection.",
    add_completion=False,
)


def _print_entries(entries: list[Entry], title: str) -> None:
    table = Table(title=escape(title), show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Language")
    table.add_column("ID", overflow="fold")
    for e in entries:
        table.add_row(str(e.ordinal), escape(e.title), e.language, e.id)
    console.print(table)


def _read_code(code_file: Path | None) -> str | None:
    if code_file is None:
        return None
    if not code_file.is_file():
        console.print(err_file_not_found(str(code_file)))
        raise typer.Exit(1)
    return code_file.read_text(encoding="utf-8")


@entries_app.command("list")
def entries_list_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    db: DbOption = None,
) -> None:
    """List the entries of a collection in ordinal order."""
    with open_workspace(db) as ws:
        collection = ws.repo.get_collection(collection_id)
        if collection is None:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)
        entries = ws.repo.list_entries_by_collection(collection_id)

    if not entries:
        console.print(f"[yellow]No entries in {escape(collection.title)}.[/]")
        raise typer.Exit(0)
    _print_entries(entries, collection.title)


@entries_app.command("add")
def entries_add_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    title: Annotated[Optional[str], typer.Argument(help="Entry title.")] = None,
    aim: Annotated[str, typer.Option("--aim")] = "",
    theory: Annotated[str, typer.Option("--theory")] = "",
    steps: Annotated[str, typer.Option("--steps")] = "",
    code_file: Annotated[
        Optional[Path], typer.Option("--code-file", help="Read the code body from a file.")
    ] = None,
    language: Annotated[str, typer.Option("--language", "-l")] = "plaintext",
    attach: Annotated[
        Optional[list[str]], typer.Option("--attach", help="Asset id to attach (repeatable).")
    ] = None,
    conclusion: Annotated[str, typer.Option("--conclusion")] = "",
    from_draft: Annotated[
        bool,
        typer.Option("--from-draft", help="Publish the saved draft for this collection."),
    ] = False,
    db: DbOption = None,
) -> None:
    """Create an entry with the next free ordinal."""
    content: dict[str, Any] = {
        "aim": aim,
        "theory": theory,
        "steps": steps,
        "code": _read_code(code_file) or "",
        "language": language,
        "attachments": list(attach or []),
        "conclusion": conclusion,
    }

    with open_workspace(db) as ws:
        ws.require_edit()
        autosave = DraftAutosave(ws.store, ThreadingScheduler())
        draft = autosave.load_for_collection(collection_id) if from_draft else None
        if from_draft and draft is None:
            console.print(f"[yellow]No saved draft for collection {escape(collection_id)}.[/]")
            raise typer.Exit(1)
        if draft is not None:
            title = title or draft.title
            content.update(
                aim=draft.aim,
                theory=draft.theory,
                steps=draft.steps,
                code=draft.code,
                language=draft.language,
                attachments=draft.attachments,
                conclusion=draft.conclusion,
            )
        if not title:
            console.print(err_invalid_value("An entry needs a title."))
            raise typer.Exit(1)

        try:
            entry = ws.repo.create_entry(collection_id, title, **content)
        except CollectionNotFoundError:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)
        except ValueError as exc:
            console.print(err_invalid_value(str(exc)))
            raise typer.Exit(1)

        if draft is not None:
            autosave.clear_draft()

    console.print(f"[green]✓[/] Added entry {entry.ordinal}: [bold]{escape(entry.title)}[/]")
    console.print(f"  id: {entry.id}")


@entries_app.command("update")
def entries_update_cmd(
    entry_id: Annotated[str, typer.Argument(help="Entry id.")],
    title: Annotated[Optional[str], typer.Option("--title")] = None,
    aim: Annotated[Optional[str], typer.Option("--aim")] = None,
    theory: Annotated[Optional[str], typer.Option("--theory")] = None,
    steps: Annotated[Optional[str], typer.Option("--steps")] = None,
    code_file: Annotated[Optional[Path], typer.Option("--code-file")] = None,
    language: Annotated[Optional[str], typer.Option("--language", "-l")] = None,
    conclusion: Annotated[Optional[str], typer.Option("--conclusion")] = None,
    db: DbOption = None,
) -> None:
    """Edit fields of an existing entry."""
    changes = {
        k: v
        for k, v in {
            "title": title,
            "aim": aim,
            "theory": theory,
            "steps": steps,
            "code": _read_code(code_file),
            "language": language,
            "conclusion": conclusion,
        }.items()
        if v is not None
    }
    with open_workspace(db) as ws:
        ws.require_edit()
        try:
            updated = ws.repo.update_entry(entry_id, **changes)
        except ValueError as exc:
            console.print(err_invalid_value(str(exc)))
            raise typer.Exit(1)
    if updated is None:
        console.print(err_entry_not_found(entry_id))
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Updated entry {updated.ordinal}: [bold]{escape(updated.title)}[/]")


@entries_app.command("delete")
def entries_delete_cmd(
    entry_id: Annotated[str, typer.Argument(help="Entry id.")],
    db: DbOption = None,
) -> None:
    """Delete one entry. Other ordinals are left unchanged."""
    with open_workspace(db) as ws:
        ws.require_edit()
        entry = ws.repo.get_entry(entry_id)
        if entry is None:
            console.print(err_entry_not_found(entry_id))
            raise typer.Exit(1)
        ws.repo.delete_entry(entry_id)
    console.print(f"[green]✓[/] Deleted entry {entry.ordinal}: {escape(entry.title)}")


@entries_app.command("reorder")
def entries_reorder_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    entry_ids: Annotated[list[str], typer.Argument(help="Entry ids in their new order.")],
    db: DbOption = None,
) -> None:
    """Renumber entries 1..n in the given order. Unknown ids are skipped."""
    with open_workspace(db) as ws:
        ws.require_edit()
        collection = ws.repo.get_collection(collection_id)
        if collection is None:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)
        reordered = ws.repo.reorder_entries(collection_id, entry_ids)

    skipped = len(entry_ids) - len(reordered)
    console.print(f"[green]✓[/] Renumbered {len(reordered)} entries")
    if skipped:
        console.print(f"  [yellow]{skipped} id(s) not in this collection were skipped[/]")
    _print_entries(reordered, collection.title)


@entries_app.command("search")
def entries_search_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    query: Annotated[str, typer.Argument(help="Text to look for in title, aim and theory.")],
    db: DbOption = None,
) -> None:
    """Search the entries of a collection."""
    with open_workspace(db) as ws:
        results = ws.repo.search_entries(collection_id, query)
    if not results:
        console.print(f"[yellow]No entries match '{escape(query)}'.[/]")
        raise typer.Exit(0)
    _print_entries(results, f"Matches for '{query}'")
