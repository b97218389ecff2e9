"""CLI module for enshrine.

This module contains the Typer CLI application and all subcommands.
"""

from enshrine.cli.main import app

__all__ = ["app"]
