"""Finalise command implementation."""

from typing import Annotated

import typer

from enshrine.cli.display import print_run_result
from enshrine.cli.runtime import execute_request, get_runtime
from enshrine.core.errors import ConfigurationError
from enshrine.deploy.orchestrator import DeploymentRequest, expand_targets
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import print_error


def finalise(
    ctx: typer.Context,
    targets: Annotated[
        list[str],
        typer.Option(
            "--to",
            "-t",
            help="Directory to finalise. May contain tags and ';'-separated paths.",
        ),
    ],
) -> None:
    """Record the current contents of directories as their known-good state.

    Examples:
        enshrine finalise --to /app/release
        enshrine finalise -t "/app/a;/app/b"
    """
    runtime = get_runtime(ctx)

    try:
        expanded = expand_targets(targets, runtime.renderer)
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.CONFIGURATION) from e

    request = DeploymentRequest(targets=expanded, finalise=True)
    result = execute_request(runtime, request, command="enshrine finalise")

    print_run_result(result)

    if result.exit_code != ExitCode.SUCCESS:
        raise typer.Exit(code=result.exit_code)
