"""Shared Rich display functions for drift reports and run results.

Provides reusable table builders and summary printers used by the scan,
deploy and finalise commands.
"""

import json

import typer
from rich.markup import escape
from rich.table import Table

from enshrine.models.drift import DriftReport
from enshrine.models.outcome import DeploymentOutcome, RunResult
from enshrine.utils.formatting import (
    console,
    create_table,
    format_drift_kind,
    format_status,
    print_error,
    print_success,
)


def create_drift_table(report: DriftReport) -> Table:
    """Create a Rich table listing every drifted file.

    Args:
        report: Drift report to display.

    Returns:
        Rich Table with Kind, Repository and File columns.
    """
    table = create_table("Changes Detected")
    table.add_column("Kind", width=10)
    table.add_column("Repository", style="muted")
    table.add_column("File")

    for record in report.records:
        table.add_row(
            format_drift_kind(record.kind), escape(record.repository), escape(record.file)
        )

    return table


def create_outcomes_table(outcomes: list[DeploymentOutcome]) -> Table:
    """Create a Rich table with one row per target directory.

    Successful targets show "OK"; failed targets show "FAIL" with the
    error message.
    """
    table = create_table("Results")
    table.add_column("Status", width=8, justify="center")
    table.add_column("Target")
    table.add_column("Stages")
    table.add_column("Message")

    for outcome in outcomes:
        message = "" if outcome.success else outcome.error or "Unknown error"
        stages = ", ".join(stage.value for stage in outcome.succeeded) or "-"
        table.add_row(
            format_status(outcome.success),
            escape(outcome.path),
            stages,
            f"[muted]{escape(message)}[/muted]",
        )

    return table


def print_drift_json(report: DriftReport) -> None:
    """Print a drift report as JSON for scripting."""
    data = {
        "count": report.count,
        "repositories": list(report.repositories),
        "changes": [
            {"kind": r.kind.value, "repository": r.repository, "file": r.file}
            for r in report.records
        ],
    }
    typer.echo(json.dumps(data, indent=2))


def print_drift(report: DriftReport, root: str) -> None:
    """Print the outcome of a drift scan."""
    if report.clean:
        print_success("No changes detected")
        return
    console.print(create_drift_table(report))
    print_error(f"{report.count} changes have been detected in: {root}")


def print_run_result(result: RunResult, scan_root: str | None = None) -> None:
    """Print drift, rendered templates and per-target results of a run."""
    if result.drift is not None:
        print_drift(result.drift, scan_root or "")
        if result.drift_detected:
            return

    for path in result.rendered_templates:
        console.print(f"[muted]Rendered {escape(path)}[/muted]")

    if result.outcomes:
        console.print(create_outcomes_table(result.outcomes))

    failed = [o for o in result.outcomes if not o.success]
    if failed:
        console.print(
            f"\n[success]{len(result.outcomes) - len(failed)} succeeded[/success], "
            f"[error]{len(failed)} failed[/error]"
        )
        for outcome in failed:
            print_error(f"{outcome.path}: {outcome.error}")
    elif result.outcomes:
        print_success(f"All {len(result.outcomes)} target(s) completed successfully.")
