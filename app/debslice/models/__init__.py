"""Data models for debslice configuration."""

from debslice.models.selection import (
    PackageSelection,
    PathOptions,
    SelectionFile,
    SliceDefinition,
)

__all__ = [
    "PackageSelection",
    "PathOptions",
    "SelectionFile",
    "SliceDefinition",
]
