"""labcraft draft CLI commands.

Commands:
  labcraft draft show [--collection ID]   show the saved draft
  labcraft draft save --collection ID ... write a draft now
  labcraft draft discard                  remove the saved draft
"""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.panel import Panel

from labcraft.cli.collections import DbOption
from labcraft.cli.context import console, open_workspace
from labcraft.db.models import Draft
from labcraft.draft.autosave import DraftAutosave
from labcraft.draft.scheduler import ThreadingScheduler

draft_app = typer.Typer(
    name="draft",
    help="Inspect, save or discard the autosaved entry draft.",
    add_completion=False,
)


@draft_app.command("show")
def draft_show_cmd(
    collection: Annotated[
        Optional[str],
        typer.Option("--collection", "-c", help="Only show a draft for this collection."),
    ] = None,
    db: DbOption = None,
) -> None:
    """Show the saved draft, if any."""
    with open_workspace(db) as ws:
        draft = DraftAutosave(ws.store, ThreadingScheduler()).load_for_collection(collection)

    if draft is None:
        console.print("[dim]No saved draft.[/]")
        raise typer.Exit(0)

    lines = [
        f"Collection: {escape(draft.collection_id or '(none)')}",
        f"Title:      [bold]{escape(draft.title or '(untitled)')}[/]",
        f"Language:   {escape(draft.language)}",
        f"Saved at:   {draft.saved_at}",
    ]
    if draft.aim:
        lines.append(f"Aim:        {escape(draft.aim)}")
    console.print(Panel("\n".join(lines), title="[bold]Draft[/]", expand=False))


@draft_app.command("save")
def draft_save_cmd(
    collection: Annotated[str, typer.Option("--collection", "-c", help="Collection id.")],
    title: Annotated[str, typer.Option("--title")] = "",
    aim: Annotated[str, typer.Option("--aim")] = "",
    theory: Annotated[str, typer.Option("--theory")] = "",
    steps: Annotated[str, typer.Option("--steps")] = "",
    language: Annotated[str, typer.Option("--language", "-l")] = "plaintext",
    conclusion: Annotated[str, typer.Option("--conclusion")] = "",
    db: DbOption = None,
) -> None:
    """Save a draft, replacing any previous one."""
    with open_workspace(db) as ws:
        autosave = DraftAutosave(
            ws.store,
            ThreadingScheduler(),
            debounce_seconds=ws.cfg.draft.debounce_seconds,
        )
        autosave.save_draft(
            Draft(
                collection_id=collection,
                title=title,
                aim=aim,
                theory=theory,
                steps=steps,
                language=language,
                conclusion=conclusion,
            )
        )
        # Write now instead of on the timer thread.
        autosave.flush()
    console.print(f"[green]✓[/] Draft saved at {autosave.last_saved}")


@draft_app.command("discard")
def draft_discard_cmd(db: DbOption = None) -> None:
    """Remove the saved draft."""
    with open_workspace(db) as ws:
        DraftAutosave(ws.store, ThreadingScheduler()).clear_draft()
    console.print("[green]✓[/] Draft discarded")
