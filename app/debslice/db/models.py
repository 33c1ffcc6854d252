"""Manifest record models.

A manifest describes every path produced by a cut: one ``PathRecord`` per
path and one ``ContentRecord`` per (slice, path) ownership pair. Records
convert to and from plain dictionaries tagged with a ``kind`` field so they
can be written as JSON lines by whatever sink persists them.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class RecordFormatError(ValueError):
    """Raised when a dictionary does not describe a valid record."""


def add_sorted(items: list[str], item: str) -> bool:
    """Insert an item into a sorted list unless already present.

    Returns:
        True if the item was added.
    """
    i = bisect_left(items, item)
    if i < len(items) and items[i] == item:
        return False
    items.insert(i, item)
    return True


def format_mode(mode: int) -> str:
    """Format permission bits as an octal string with a leading zero."""
    return f"0{mode:o}" if mode else "0"


@dataclass(slots=True)
class PathRecord:
    """A path produced by a cut.

    Attributes:
        path: Absolute path; directories end with ``/``.
        mode: File mode. Only permission bits remain once finalized.
        slices: Sorted names of the slices owning the path.
        sha256: Hex digest of the content as extracted.
        final_sha256: Hex digest after mutation, if the content changed.
        size: Content size in bytes (meaningful when ``sha256`` is set).
        link: Symlink target, if the path is a symlink.
    """

    path: str
    mode: int = 0
    slices: list[str] = field(default_factory=list)
    sha256: str = ""
    final_sha256: str = ""
    size: int = 0
    link: str = ""

    def add_slice(self, name: str) -> bool:
        """Add an owning slice, returning True if it was not there yet."""
        return add_sorted(self.slices, name)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": "path",
            "path": self.path,
            "mode": format_mode(self.mode),
            "slices": list(self.slices),
        }
        if self.sha256:
            data["sha256"] = self.sha256
        if self.final_sha256:
            data["final_sha256"] = self.final_sha256
        if self.sha256:
            data["size"] = self.size
        if self.link:
            data["link"] = self.link
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PathRecord:
        if data.get("kind") != "path":
            msg = f'invalid kind {data.get("kind")!r}: must be "path"'
            raise RecordFormatError(msg)
        try:
            mode = int(str(data.get("mode", "0")), 8)
        except ValueError as e:
            raise RecordFormatError(f"invalid mode {data.get('mode')!r}: {e}") from e
        return cls(
            path=data["path"],
            mode=mode,
            slices=sorted(data.get("slices") or []),
            sha256=data.get("sha256", ""),
            final_sha256=data.get("final_sha256", ""),
            size=data.get("size", 0),
            link=data.get("link", ""),
        )


@dataclass(frozen=True, slots=True)
class ContentRecord:
    """Ownership of a path by a slice.

    Attributes:
        slice: Slice name.
        path: Absolute path owned by the slice.
    """

    slice: str
    path: str

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "content", "slice": self.slice, "path": self.path}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentRecord:
        if data.get("kind") != "content":
            msg = f'invalid kind {data.get("kind")!r}: must be "content"'
            raise RecordFormatError(msg)
        return cls(slice=data["slice"], path=data["path"])


ManifestRecord = PathRecord | ContentRecord

# Sink receiving manifest records; exceptions abort the emission.
WriteRecord = Callable[[ManifestRecord], None]


def record_from_dict(data: dict[str, Any]) -> ManifestRecord:
    """Build a record from its dictionary form, dispatching on ``kind``."""
    if data.get("kind") == "content":
        return ContentRecord.from_dict(data)
    return PathRecord.from_dict(data)
