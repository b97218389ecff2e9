"""Deploy command implementation.

Combines scan, template rendering, replace or copy, and finalise into a
single run over one or more target directories.
"""

from pathlib import Path
from typing import Annotated

import typer

from enshrine.cli.display import print_run_result
from enshrine.cli.runtime import execute_request, get_runtime
from enshrine.core.errors import ConfigurationError
from enshrine.deploy.orchestrator import DeploymentRequest, expand_targets
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import print_error


def deploy(
    ctx: typer.Context,
    targets: Annotated[
        list[str] | None,
        typer.Option(
            "--to",
            "-t",
            help="Target directory. May contain tags and ';'-separated paths.",
        ),
    ] = None,
    source: Annotated[
        Path | None,
        typer.Option(
            "--from",
            "-f",
            help="Directory to deploy from.",
        ),
    ] = None,
    replace: Annotated[
        bool,
        typer.Option(
            "--replace",
            "-r",
            help="Back up, stop services, delete and repopulate each target.",
        ),
    ] = False,
    copy: Annotated[
        bool,
        typer.Option(
            "--copy",
            "-c",
            help="Copy files into each target without clearing it.",
        ),
    ] = False,
    finalise: Annotated[
        bool,
        typer.Option(
            "--finalise",
            "-x",
            help="Record a snapshot of each target afterwards.",
        ),
    ] = False,
    scan_root: Annotated[
        Path | None,
        typer.Option(
            "--scan-dir",
            help="Abort if any finalised directory under this root has changed.",
        ),
    ] = None,
    template_filter: Annotated[
        str | None,
        typer.Option(
            "--template-filter",
            help="Glob of files in the source directory to render in place.",
        ),
    ] = None,
    no_backup: Annotated[
        bool,
        typer.Option(
            "--no-backup",
            help="Skip the zip backup of each target before it is replaced.",
        ),
    ] = False,
) -> None:
    """Deploy a directory to one or more targets.

    Examples:
        enshrine deploy --from ./build --to /app/release --replace --finalise
        enshrine deploy --scan-dir /app -f ./build -t "/app/a;/app/b" --copy
    """
    runtime = get_runtime(ctx)

    try:
        expanded = expand_targets(targets or [], runtime.renderer)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.CONFIGURATION) from e

    request = DeploymentRequest(
        targets=expanded,
        source=source,
        replace=replace,
        copy=copy,
        finalise=finalise,
        scan_root=scan_root,
        template_filter=template_filter,
    )
    result = execute_request(
        runtime,
        request,
        command="enshrine deploy",
        backup=False if no_backup else None,
    )

    print_run_result(result, str(scan_root) if scan_root else None)

    if result.exit_code != ExitCode.SUCCESS:
        raise typer.Exit(code=result.exit_code)
