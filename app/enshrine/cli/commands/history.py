"""History command for viewing past deployment runs.

This module provides the `enshrine history` command for viewing the
runs recorded by deploy and finalise.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.markup import escape

from enshrine.core.state import StateManager
from enshrine.models.history import HistoryEntry
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import (
    console,
    create_table,
    format_status,
    print_error,
    print_info,
)

app = typer.Typer(
    name="history",
    help="View history of deployment runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of deployment runs.

    Each entry shows the requested operations, the targets touched and
    whether the run succeeded.

    Examples:
        enshrine history              # Show last 20 entries
        enshrine history -n 50        # Show last 50 entries
        enshrine history --since 2026-01-01
        enshrine history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history(limit=limit)

    if since:
        try:
            since_parsed = datetime.fromisoformat(since)
        except ValueError:
            print_error(f"Invalid date format: {since}. Use YYYY-MM-DD.")
            raise typer.Exit(code=ExitCode.FAILURE) from None

        entries = [e for e in entries if _is_since(e, since_parsed)]

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(entries)
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as Rich table.

    Args:
        entries: List of history entries to display.
    """
    table = create_table("Deployment History")
    table.add_column("ID", style="muted")
    table.add_column("Timestamp", style="info")
    table.add_column("Operations")
    table.add_column("Targets")
    table.add_column("Result", justify="center")

    for entry in entries:
        paths = [target.path for target in entry.targets]
        summary = ", ".join(paths[:3])
        if len(paths) > 3:
            summary += f" (+{len(paths) - 3} more)"

        table.add_row(
            entry.id[:8],
            entry.finished_at.strftime("%Y-%m-%d %H:%M"),
            ", ".join(entry.operations),
            escape(summary) or "-",
            format_status(entry.success),
        )

    console.print(table)


def _is_since(entry: HistoryEntry, since: datetime) -> bool:
    # A bare date compares by calendar day, an aware datetime exactly
    if since.tzinfo is None:
        return entry.finished_at.date() >= since.date()
    return entry.finished_at >= since


def _print_json(entries: list[HistoryEntry]) -> None:
    """Print history as JSON for scripting."""
    output = [entry.to_dict() for entry in entries]
    typer.echo(json.dumps(output, indent=2))
