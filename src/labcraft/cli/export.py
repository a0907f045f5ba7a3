"""labcraft export / print commands.

Commands:
  labcraft export entry ENTRY_ID            one entry as a paginated A4 PDF
  labcraft export collection COLLECTION_ID  cover + all entries in one PDF
  labcraft print ENTRY_ID                   printable HTML document
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.markup import escape

from labcraft.cli.collections import DbOption
from labcraft.cli.context import Workspace, console, open_workspace
from labcraft.cli.errors import (
    err_collection_not_found,
    err_entry_not_found,
    err_export_failed,
    err_invalid_value,
)
from labcraft.export.capabilities import HtmlFilePrinter, PillowRasterizer, ReportLabDocumentWriter
from labcraft.export.exporter import PdfExporter
from labcraft.export.paginator import FITS
from labcraft.render.markup import entry_markup

export_app = typer.Typer(
    name="export",
    help="Export entries and collections to PDF.",
    add_completion=False,
)

OutputDirOption = Annotated[
    Optional[Path],
    typer.Option("--output-dir", "-o", help="Directory for the PDF (default from config)."),
]
FitOption = Annotated[
    Optional[str],
    typer.Option("--fit", help="'width' flows onto pages, 'page' shrinks onto one page."),
]


def _build_exporter(ws: Workspace, output_dir: Path | None, fit: str | None) -> PdfExporter:
    cfg = ws.cfg.export
    fit = fit or cfg.fit
    if fit not in FITS:
        console.print(err_invalid_value(f"--fit must be one of: {', '.join(FITS)}"))
        raise typer.Exit(1)
    return PdfExporter(
        PillowRasterizer(),
        lambda: ReportLabDocumentWriter(cfg.page_width, cfg.page_height),
        output_dir=output_dir or Path(cfg.output_dir),
        margin_top=cfg.margin_top,
        scale=cfg.scale,
        fit=fit,
    )


def _report(exporter: PdfExporter, ok: bool, target: str) -> None:
    if not ok:
        console.print(err_export_failed(target))
        raise typer.Exit(1)
    pages = len(exporter.last_placements)
    console.print(
        f"[green]✓[/] PDF written to [bold]{escape(str(exporter.last_path))}[/] ({pages} page(s))"
    )


@export_app.command("entry")
def export_entry_cmd(
    entry_id: Annotated[str, typer.Argument(help="Entry id.")],
    output_dir: OutputDirOption = None,
    fit: FitOption = None,
    db: DbOption = None,
) -> None:
    """Export one entry to PDF."""
    with open_workspace(db) as ws:
        entry = ws.repo.get_entry(entry_id)
        if entry is None:
            console.print(err_entry_not_found(entry_id))
            raise typer.Exit(1)
        collection = ws.repo.get_collection(entry.collection_id)
        if collection is None:
            console.print(err_collection_not_found(entry.collection_id))
            raise typer.Exit(1)
        exporter = _build_exporter(ws, output_dir, fit)
        ok = exporter.export_entry(entry, collection, ws.assets.get)
    _report(exporter, ok, entry.title)


@export_app.command("collection")
def export_collection_cmd(
    collection_id: Annotated[str, typer.Argument(help="Collection id.")],
    output_dir: OutputDirOption = None,
    fit: FitOption = None,
    db: DbOption = None,
) -> None:
    """Export a whole collection to one PDF."""
    with open_workspace(db) as ws:
        collection = ws.repo.get_collection(collection_id)
        if collection is None:
            console.print(err_collection_not_found(collection_id))
            raise typer.Exit(1)
        entries = ws.repo.list_entries_by_collection(collection_id)
        exporter = _build_exporter(ws, output_dir, fit)
        ok = exporter.export_collection(collection, entries, ws.assets.get)
    _report(exporter, ok, collection.title)


def print_cmd(
    entry_id: Annotated[str, typer.Argument(help="Entry id.")],
    output_dir: OutputDirOption = None,
    open_browser: Annotated[
        bool, typer.Option("--open", help="Open the document in the default browser.")
    ] = False,
    db: DbOption = None,
) -> None:
    """Write a printable HTML version of an entry."""
    with open_workspace(db) as ws:
        entry = ws.repo.get_entry(entry_id)
        if entry is None:
            console.print(err_entry_not_found(entry_id))
            raise typer.Exit(1)
        collection = ws.repo.get_collection(entry.collection_id)
        if collection is None:
            console.print(err_collection_not_found(entry.collection_id))
            raise typer.Exit(1)
        images = {a: data for a in entry.attachments if (data := ws.assets.get(a)) is not None}
        printer = HtmlFilePrinter(output_dir or Path(ws.cfg.export.output_dir), open_browser=open_browser)
        # No scheduler: print synchronously.
        exporter = PdfExporter(None, None, printer=printer)
        ok = exporter.print_element(entry_markup(entry, collection, images), title=entry.title)

    if not ok or printer.last_path is None:
        console.print(err_export_failed(entry.title))
        raise typer.Exit(1)
    console.print(f"[green]✓[/] Print document written to [bold]{escape(str(printer.last_path))}[/]")
