"""Selection file loading.

This module provides functions for loading slice selection files in TOML
format with proper validation using Pydantic models.
"""

import tomllib
from pathlib import Path

import typer
from pydantic import ValidationError

from debslice.core.paths import get_selection_path
from debslice.models.selection import SelectionFile


class SelectionError(Exception):
    """Base exception for selection-related errors."""


class SelectionNotFoundError(SelectionError):
    """Raised when the selection file is not found."""


class SelectionParseError(SelectionError):
    """Raised when the selection file cannot be parsed."""


class SelectionValidationError(SelectionError):
    """Raised when the selection content is invalid."""


def load_selection(path: Path | None = None) -> SelectionFile:
    """Load and validate a selection from a TOML file.

    Args:
        path: Path to the selection file. If None, uses the default path.

    Returns:
        Validated SelectionFile object.

    Raises:
        SelectionNotFoundError: If the selection file doesn't exist.
        SelectionParseError: If the TOML syntax is invalid.
        SelectionValidationError: If the content doesn't match the schema.
    """
    selection_path = path or get_selection_path()

    if not selection_path.exists():
        raise SelectionNotFoundError(f"Selection not found: {selection_path}")

    try:
        with open(selection_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SelectionParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SelectionError(f"Failed to read selection: {e}") from e

    try:
        return SelectionFile.model_validate(data)
    except ValidationError as e:
        raise SelectionValidationError(f"Invalid selection content: {e}") from e


def require_selection(selection_path: Path | None = None) -> SelectionFile:
    """Load the selection or exit with a helpful error message.

    Args:
        selection_path: Optional custom selection path.

    Returns:
        Loaded and validated SelectionFile.

    Raises:
        typer.Exit: If the selection cannot be loaded.
    """
    from debslice.utils.formatting import print_error, print_info

    path = selection_path or get_selection_path()
    try:
        return load_selection(path)
    except SelectionNotFoundError as e:
        print_error(f"Selection not found: {path}")
        print_info("Pass --selection or create ~/.config/debslice/slices.toml.")
        raise typer.Exit(code=1) from e
    except SelectionError as e:
        print_error(f"Failed to load selection: {e}")
        raise typer.Exit(code=1) from e
