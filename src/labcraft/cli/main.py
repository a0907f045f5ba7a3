"""labcraft CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated, Optional

import typer
from rich.logging import RichHandler
from rich.markup import escape

from labcraft.cli.assets import assets_app
from labcraft.cli.collections import DbOption, collections_app
from labcraft.cli.context import console, open_workspace
from labcraft.cli.draft import draft_app
from labcraft.cli.entries import entries_app
from labcraft.cli.errors import err_invalid_value
from labcraft.cli.export import export_app, print_cmd
from labcraft.db.models import ROLES, THEMES


def _version() -> str:
    try:
        return importlib.metadata.version("labcraft")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"labcraft {_version()}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


app = typer.Typer(
    name="labcraft",
    help=(
        "labcraft: lab manual manager.\n\n"
        "  Collections hold numbered entries; entries export to paginated A4 PDFs."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
) -> None:
    """labcraft: lab manual manager."""
    _configure_logging(verbose)


app.add_typer(collections_app, name="collections")
app.add_typer(entries_app, name="entries")
app.add_typer(assets_app, name="assets")
app.add_typer(draft_app, name="draft")
app.add_typer(export_app, name="export")
app.command("print")(print_cmd)


@app.command("login")
def login_cmd(
    email: Annotated[str, typer.Argument(help="Identity recorded as owner of new records.")],
    role: Annotated[str, typer.Option("--role", help="admin or viewer.")] = "admin",
    db: DbOption = None,
) -> None:
    """Remember who is working in this project."""
    if role not in ROLES:
        console.print(err_invalid_value(f"Unknown role '{role}'. Choose one of: {', '.join(ROLES)}"))
        raise typer.Exit(1)
    with open_workspace(db) as ws:
        session = ws.sessions.sign_in(email, role)
    console.print(f"[green]✓[/] Signed in as [bold]{escape(session.email)}[/] ({session.role})")


@app.command("logout")
def logout_cmd(db: DbOption = None) -> None:
    """Forget the signed-in identity."""
    with open_workspace(db) as ws:
        ws.sessions.sign_out()
    console.print("[green]✓[/] Signed out")


@app.command("theme")
def theme_cmd(
    theme: Annotated[
        Optional[str], typer.Argument(help="light, dark or system. Omit to show the current theme.")
    ] = None,
    db: DbOption = None,
) -> None:
    """Show or set the theme preference."""
    with open_workspace(db) as ws:
        if theme is None:
            console.print(f"Theme: [bold]{ws.sessions.get_theme()}[/]")
            return
        if theme not in THEMES:
            console.print(err_invalid_value(f"Unknown theme '{theme}'. Choose one of: {', '.join(THEMES)}"))
            raise typer.Exit(1)
        ws.sessions.set_theme(theme)
    console.print(f"[green]✓[/] Theme set to [bold]{theme}[/]")


@app.command("version")
def version_cmd() -> None:
    """Show the installed labcraft version."""
    typer.echo(f"labcraft {_version()}")


if __name__ == "__main__":
    app()
