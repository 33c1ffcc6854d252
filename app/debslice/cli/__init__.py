"""CLI package for debslice.

This package contains the Typer application and all subcommands.
"""

from debslice.cli.main import app

__all__ = ["app"]
