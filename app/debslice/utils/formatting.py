"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import stat
import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from debslice.core.theme import get_theme
from debslice.db.models import format_mode

if TYPE_CHECKING:
    from debslice.db.models import PathRecord


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


def create_record_table(title: str = "Manifest") -> Table:
    """Create a pre-configured table for displaying manifest records.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for record display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Path", no_wrap=True)
    table.add_column("Mode", style="muted", justify="right")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Digest", style="digest")
    table.add_column("Slices", style="text")
    return table


def format_record_row(record: PathRecord) -> tuple[str, str, str, str, str]:
    """Format a path record as a table row with markup.

    Digests are shortened to eight characters; a changed digest after
    mutation is shown next to the original one.

    Args:
        record: The record to format.

    Returns:
        Tuple of (path, mode, size, digest, slices) with Rich markup.
    """
    if record.link:
        path = f"[path.link]{record.path}[/] -> {record.link}"
    elif record.path.endswith("/"):
        path = f"[path.dir]{record.path}[/]"
    else:
        path = f"[path.file]{record.path}[/]"

    size = str(record.size) if record.sha256 else "-"
    digest = record.sha256[:8] or "-"
    if record.final_sha256:
        digest += f" [mutated]→ {record.final_sha256[:8]}[/]"
    slices = ", ".join(record.slices) or "-"
    return (path, format_mode(stat.S_IMODE(record.mode)), size, digest, slices)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
