"""Slice cutting and manifest recording."""

from debslice.slicer.recorder import PathRecorder
from debslice.slicer.runner import (
    MutateHook,
    RunOptions,
    SelectedPath,
    SlicerError,
    build_tree,
    new_selection_tree,
    run,
    select_slices,
)

__all__ = [
    "MutateHook",
    "PathRecorder",
    "RunOptions",
    "SelectedPath",
    "SlicerError",
    "build_tree",
    "new_selection_tree",
    "run",
    "select_slices",
]
