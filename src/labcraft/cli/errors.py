"""labcraft rich error messages.

Every error shown to the user says what went wrong and what to do next.

Usage:
    from labcraft.cli.errors import err_collection_not_found
    console.print(err_collection_not_found(collection_id))
    raise typer.Exit(1)
"""

from __future__ import annotations

from rich.markup import escape


def err_config(detail: str) -> str:
    """Config file could not be loaded."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {escape(detail)}\n"
        "  Fix labcraft.yaml (or ~/.labcraft/config.yaml) and retry."
    )


def err_collection_not_found(collection_id: str) -> str:
    return (
        f"[red]Error:[/] Collection '{escape(collection_id)}' not found.\n"
        "  Run:  labcraft collections list"
    )


def err_entry_not_found(entry_id: str) -> str:
    return (
        f"[red]Error:[/] Entry '{escape(entry_id)}' not found.\n"
        "  Run:  labcraft entries list <collection-id>"
    )


def err_invalid_value(detail: str) -> str:
    return f"[red]Error:[/] {escape(detail)}"


def err_file_not_found(path: str) -> str:
    return f"[red]Error:[/] File not found: '{escape(str(path))}'"


def err_no_uploads(submitted: int) -> str:
    """upload_many returned nothing."""
    if submitted == 0:
        return "[yellow]No files given.[/]"
    return (
        f"[red]Error:[/] None of the {submitted} file(s) could be uploaded.\n"
        "  Only image files (png, jpeg, gif, webp, ...) are accepted."
    )


def err_export_failed(target: str) -> str:
    return (
        f"[red]Error:[/] Export of '{escape(target)}' failed.\n"
        "  Re-run with --verbose for details."
    )


def err_read_only(email: str) -> str:
    """Signed-in session may not edit."""
    return (
        f"[red]Error:[/] '{escape(email)}' has read-only access.\n"
        "  Sign in with an admin account to make changes."
    )


def warn_orphaned_assets(collection_id: str, count: int) -> str:
    """Shown after a collection delete: its assets are still stored."""
    return (
        f"[yellow]⚠[/] {count} asset(s) of this collection are still stored.\n"
        f"  Remove them with:  labcraft assets purge {escape(collection_id)}"
    )
