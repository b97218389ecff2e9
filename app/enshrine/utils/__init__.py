"""Utility modules for enshrine.

This module exports commonly used utility functions.
"""

from enshrine.utils.formatting import (
    console,
    create_table,
    err_console,
    format_drift_kind,
    format_status,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from enshrine.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "create_table",
    "err_console",
    "format_drift_kind",
    "format_status",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
