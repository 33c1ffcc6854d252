"""Debian package reading and content extraction.

This module exports the extractor and the errors it raises.
"""

from debslice.deb.container import iter_members, read_data_payload
from debslice.deb.errors import (
    ArchiveFormatError,
    ExtractError,
    ExtractSpecError,
    MissingContentError,
)
from debslice.deb.extract import (
    ExtractInfo,
    ExtractOptions,
    check_extract_options,
    extract,
    extract_data,
)

__all__ = [
    "ArchiveFormatError",
    "ExtractError",
    "ExtractInfo",
    "ExtractOptions",
    "ExtractSpecError",
    "MissingContentError",
    "check_extract_options",
    "extract",
    "extract_data",
    "iter_members",
    "read_data_payload",
]
