"""Config commands.

Show the effective configuration and write a default config file.
"""

from pathlib import Path
from typing import Annotated

import typer

from enshrine.cli.runtime import get_config
from enshrine.core.config import EnshrineConfig, save_config
from enshrine.core.errors import ConfigError
from enshrine.core.paths import get_config_path
from enshrine.models.outcome import ExitCode
from enshrine.utils.formatting import console, create_table, print_error, print_success

app = typer.Typer(
    help="Inspect and create the enshrine configuration file.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    config = get_config(ctx)
    config_path: Path = ctx.obj.get("config_path") or get_config_path()

    table = create_table(f"Configuration ({config_path})")
    table.add_column("Setting", style="info")
    table.add_column("Value")

    for name, value in config.model_dump(mode="json").items():
        table.add_row(name, "-" if value is None else str(value))

    console.print(table)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default settings."""
    config_path: Path = ctx.obj.get("config_path") or get_config_path()

    if config_path.exists() and not force:
        print_error(f"Config file already exists: {config_path}. Use --force to overwrite.")
        raise typer.Exit(code=ExitCode.FAILURE)

    try:
        saved = save_config(EnshrineConfig(), config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILURE) from e

    print_success(f"Config written to {saved}")
