"""labcraft collections CLI commands.

Commands:
  labcraft collections list                      show all collections
  labcraft collections create TITLE --subject S  create a collection
  labcraft collections update ID [--title ...]   edit a collection
  labcraft collections delete ID                 delete it and all its entries
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from labcraft.cli.context import console, open_workspace
from labcraft.cli.errors import err_collection_not_found, warn_orphaned_assets

collections_app = typer.Typer(
    name="collections",
    help="Manage collections (list, create, update, delete).",
    add_completion=False,
)

DbOption = Annotated[
    Optional[Path],
    typer.Option("--db", help="Path to the labcraft database (default from config)."),
]


@collections_app.command("list")
def collections_list_cmd(db: DbOption = None) -> None:
    """List all collections with their entry counts."""
    with open_workspace(db) as ws:
        collections = ws.repo.list_collections()

    if not collections:
        console.print(
            "[yellow]No collections yet.[/]\n"
            "  Run:  labcraft collections create <title> --subject <subject>"
        )
        raise typer.Exit(0)

    table = Table(title="Collections", show_header=True, header_style="bold")
    table.add_column("ID", overflow="fold")
    table.add_column("Title", style="bold")
    table.add_column("Subject")
    table.add_column("Entries", justify="right")
    for c in collections:
        table.add_row(c.id, escape(c.title), escape(c.subject), str(c.entry_count or 0))
    console.print(table)


@collections_app.command("create")
def collections_create_cmd(
    title: Annotated[str, typer.Argument(help="Collection title.")],
    subject: Annotated[str, typer.Option("--subject", "-s", help="Subject name.")],
    description: Annotated[
        Optional[str], typer.Option("--description", "-d", help="Optional description.")
    ] = None,
    db: DbOption = None,
) -> None:
    """Create a new collection."""
    with open_workspace(db) as ws:
        ws.require_edit()
        collection = ws.repo.create_collection(title, subject, description)
    console.print(f"[green]✓[/] Created collection [bold]{escape(collection.title)}[/]")
    console.print(f"  id: {collection.id}")


@collections_app.command("update")
def collections_update_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    title: Annotated[Optional[str], typer.Option("--title", help="New title.")] = None,
    subject: Annotated[Optional[str], typer.Option("--subject", help="New subject.")] = None,
    description: Annotated[
        Optional[str], typer.Option("--description", help="New description.")
    ] = None,
    db: DbOption = None,
) -> None:
    """Update title, subject or description of a collection."""
    changes = {
        k: v
        for k, v in {"title": title, "subject": subject, "description": description}.items()
        if v is not None
    }
    with open_workspace(db) as ws:
        ws.require_edit()
        updated = ws.repo.update_collection(collection_id, **changes)
    if updated is None:
        console.print(err_collection_not_found(collection_id))
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Updated collection [bold]{escape(updated.title)}[/]")


@collections_app.command("delete")
def collections_delete_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: DbOption = None,
) -> None:
    """Delete a collection and every entry in it."""
    with open_workspace(db) as ws:
        ws.require_edit()
        collection = ws.repo.get_collection(collection_id)
        if collection is None:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)

        console.print(
            f"\nDelete collection: [bold]{escape(collection.title)}[/]"
            f"  ({collection.entry_count} entries)"
        )
        if not yes and not typer.confirm("Confirm delete?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

        ws.repo.delete_collection(collection_id)
        leftover = len(ws.assets.list_by_collection(collection_id))

    console.print(f"[green]✓[/] Deleted: {escape(collection.title)}")
    if leftover:
        console.print(warn_orphaned_assets(collection_id, leftover))
