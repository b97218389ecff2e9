"""Render command implementation.

Reads text from standard input, replaces every tag and writes the result
to standard output.
"""

import sys

import typer

from enshrine.cli.runtime import get_runtime
from enshrine.core.errors import TemplateError
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import print_error


def render(ctx: typer.Context) -> None:
    """Render tags in standard input to standard output.

    Examples:
        echo "{{ Environment }}" | enshrine render
    """
    runtime = get_runtime(ctx)
    text = sys.stdin.read()

    try:
        output = runtime.renderer.render(text)
    except TemplateError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILURE) from e

    typer.echo(output, nl=False)
