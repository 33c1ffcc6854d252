"""CLI commands for debslice.

This package contains all subcommand implementations.
"""

from debslice.cli.commands import cut, query

__all__ = ["cut", "query"]
