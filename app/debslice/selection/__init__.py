"""Path selection tree.

This module exposes the radix tree used to record which paths, implicit
parent directories and glob patterns a set of slices selects.
"""

from debslice.selection.tree import (
    NodeKind,
    PathConflictError,
    PathNode,
    PathTree,
    replace_value,
)
from debslice.utils.paths import PathBackreferenceError, PathError

__all__ = [
    "NodeKind",
    "PathBackreferenceError",
    "PathConflictError",
    "PathError",
    "PathNode",
    "PathTree",
    "replace_value",
]
