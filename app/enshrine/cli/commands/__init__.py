"""CLI commands for enshrine.

This package contains all subcommand implementations.
"""

from enshrine.cli.commands import config, deploy, finalise, history, render, scan

__all__ = ["config", "deploy", "finalise", "history", "render", "scan"]
