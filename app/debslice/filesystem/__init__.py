"""Filesystem creation for extracted content.

This module provides the primitive the extractor uses to materialize
files, directories and symlinks under a destination root.
"""

from debslice.filesystem.create import (
    DEFAULT_DIR_MODE,
    CreatedEntry,
    CreateOptions,
    create,
    make_dirs,
)

__all__ = [
    "DEFAULT_DIR_MODE",
    "CreateOptions",
    "CreatedEntry",
    "create",
    "make_dirs",
]
