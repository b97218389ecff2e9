"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich. Messages often
embed deployment paths, which are escaped so that brackets in directory
names are never read as markup.
"""

import sys

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from enshrine.core.theme import get_theme
from enshrine.models.drift import DriftKind


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_table(title: str) -> Table:
    """Create a pre-configured table using the shared header and border styles.

    Args:
        title: Table title.

    Returns:
        Rich Table with no columns yet.
    """
    return Table(
        title=escape(title),
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )


def format_drift_kind(kind: DriftKind) -> str:
    """Return the drift kind label styled with its theme color.

    Every DriftKind value has a style of the same name in the theme.
    """
    return f"[{kind.value}]{kind.value}[/]"


def format_status(success: bool) -> str:
    """Return the OK/FAIL label used in result and history tables."""
    return "[success]OK[/]" if success else "[error]FAIL[/]"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{escape(message)}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{escape(message)}[/]")
