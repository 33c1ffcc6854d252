"""Manifest database records.

This module exports the record shapes emitted by the recorder.
"""

from debslice.db.models import (
    ContentRecord,
    ManifestRecord,
    PathRecord,
    RecordFormatError,
    WriteRecord,
    record_from_dict,
)

__all__ = [
    "ContentRecord",
    "ManifestRecord",
    "PathRecord",
    "RecordFormatError",
    "WriteRecord",
    "record_from_dict",
]
