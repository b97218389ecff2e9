"""Scan command implementation.

Reports drift in every snapshot repository found under a root directory.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from enshrine.cli.display import print_drift, print_drift_json
from enshrine.cli.runtime import get_runtime
from enshrine.core.errors import DriftDetected, EnshrineError, MissingPrerequisiteError
from enshrine.models.drift import DriftReport
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options for scan."""

    TABLE = "table"
    JSON = "json"


def scan(
    ctx: typer.Context,
    root: Annotated[
        Path,
        typer.Argument(help="Directory to scan for snapshot repositories."),
    ],
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Detect changes made to finalised directories.

    Every directory under ROOT that holds a snapshot is compared with its
    last finalised state. Exits with code 3 when any change is found.

    Examples:
        enshrine scan /app
        enshrine scan /app --format json
    """
    runtime = get_runtime(ctx)

    try:
        report = runtime.scanner().verify(root)
    except DriftDetected as e:
        _print_report(e.report or DriftReport(), root, output_format)
        raise typer.Exit(code=ExitCode.DRIFT) from e
    except MissingPrerequisiteError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.CONFIGURATION) from e
    except EnshrineError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILURE) from e

    if not report.repositories and output_format == OutputFormat.TABLE:
        print_warning(f"No finalised directories found under {root}")
    _print_report(report, root, output_format)


def _print_report(report: DriftReport, root: Path, output_format: OutputFormat) -> None:
    if output_format == OutputFormat.JSON:
        print_drift_json(report)
    else:
        print_drift(report, str(root))
