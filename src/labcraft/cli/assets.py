"""labcraft assets CLI commands.

Commands:
  labcraft assets upload COLLECTION_ID FILE [FILE ...]
  labcraft assets list COLLECTION_ID
  labcraft assets delete ASSET_ID
  labcraft assets purge COLLECTION_ID
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from labcraft.assets.store import UploadFile
from labcraft.cli.collections import DbOption
from labcraft.cli.context import console, open_workspace
from labcraft.cli.errors import err_collection_not_found, err_file_not_found, err_no_uploads

assets_app = typer.Typer(
    name="assets",
    help="Upload and manage compressed image attachments.",
    add_completion=False,
)


@assets_app.command("upload")
def assets_upload_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection the images belong to.")],
    files: Annotated[list[Path], typer.Argument(help="Image files to upload.")],
    max_width: Annotated[
        int, typer.Option("--max-width", help="Override assets.max_width for this upload.")
    ] = 0,
    db: DbOption = None,
) -> None:
    """Compress and store images. Files that fail are reported and skipped."""
    uploads: list[UploadFile] = []
    for path in files:
        if not path.is_file():
            console.print(err_file_not_found(str(path)))
            continue
        uploads.append(UploadFile.from_path(path))

    with open_workspace(db) as ws:
        ws.require_edit()
        if ws.repo.get_collection(collection_id) is None:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)
        if max_width > 0:
            ws.assets.max_width = max_width
        stored = ws.assets.upload_many(collection_id, uploads)

    if not stored:
        console.print(err_no_uploads(len(files)))
        raise typer.Exit(1)

    console.print(f"[green]✓[/] Uploaded {len(stored)}/{len(files)} file(s)")
    for asset in stored:
        console.print(f"  {asset.id}")


@assets_app.command("list")
def assets_list_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    db: DbOption = None,
) -> None:
    """List stored assets of a collection."""
    with open_workspace(db) as ws:
        assets = ws.assets.list_by_collection(collection_id)

    if not assets:
        console.print("[yellow]No assets stored for this collection.[/]")
        raise typer.Exit(0)

    table = Table(title="Assets", show_header=True, header_style="bold")
    table.add_column("ID", overflow="fold")
    table.add_column("Size (KB)", justify="right")
    table.add_column("Created")
    for a in assets:
        table.add_row(a.id, f"{len(a.data) * 3 / 4 / 1024:.1f}", a.created_at)
    console.print(table)


@assets_app.command("delete")
def assets_delete_cmd(
    asset_id: Annotated[str, typer.Argument(help="Asset id.")],
    db: DbOption = None,
) -> None:
    """Delete one asset. Entries that reference it keep the dangling id."""
    with open_workspace(db) as ws:
        ws.require_edit()
        ok = ws.assets.delete(asset_id)
    if not ok:
        console.print(f"[red]Error:[/] Could not delete asset '{asset_id}'.")
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Deleted asset {asset_id}")


@assets_app.command("purge")
def assets_purge_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt.")] = False,
    db: DbOption = None,
) -> None:
    """Delete every asset stored for a collection."""
    if not yes and not typer.confirm(f"Delete all assets of {collection_id}?", default=False):
        console.print("[dim]Cancelled.[/]")
        raise typer.Exit(0)
    with open_workspace(db) as ws:
        ws.require_edit()
        removed = ws.assets.purge_collection_assets(collection_id)
    console.print(f"[green]✓[/] Removed {removed} asset(s)")
