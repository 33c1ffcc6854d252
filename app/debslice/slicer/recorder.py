"""Manifest recorder.

Observes an extraction through its callbacks and builds one ``PathRecord``
per produced path. Ownership comes from the slices that claimed a path
directly or through a glob, and is propagated to every ancestor directory
so that a directory is owned by each slice owning something inside it.
"""

import hashlib
import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from debslice.db.models import ContentRecord, PathRecord, WriteRecord, add_sorted
from debslice.deb.extract import ConsumeData
from debslice.filesystem.create import DEFAULT_DIR_MODE
from debslice.utils.paths import glob_path, parent_dir

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, slots=True)
class _ContentInfo:
    size: int
    digest: str


def compute_digest(data: bytes) -> str:
    """Return the SHA-256 hex digest of some bytes."""
    return hashlib.sha256(data).hexdigest()


class PathRecorder:
    """Accumulates manifest records for the paths produced by a cut.

    Typical use: register slice claims with ``add_slice_path`` and
    ``add_slice_glob``, pass ``on_data`` and ``on_create`` to the extractor,
    then call ``update_targets`` and ``update_db`` once extraction is done.
    """

    def __init__(self) -> None:
        self._path_slices: dict[str, list[str]] = {}
        self._glob_slices: dict[str, list[str]] = {}
        self._target_to_source: dict[str, str] = {}
        self._source_content: dict[str, _ContentInfo] = {}
        self._targets: dict[str, PathRecord] = {}
        self._mutated: set[str] = set()

    def add_slice_path(self, slice_name: str, path: str) -> None:
        """Record that a slice claims an exact path."""
        add_sorted(self._path_slices.setdefault(path, []), slice_name)

    def add_slice_glob(self, slice_name: str, glob: str) -> None:
        """Record that a slice claims every path matching a glob."""
        add_sorted(self._glob_slices.setdefault(glob, []), slice_name)

    def on_data(self, source: str, size: int) -> ConsumeData:
        """Return a consumer hashing the content of a source path."""

        def consume(reader: BinaryIO) -> None:
            digest = hashlib.sha256()
            read = 0
            while chunk := reader.read(_CHUNK_SIZE):
                digest.update(chunk)
                read += len(chunk)
            if read != size:
                logger.debug("Content of %s is %d bytes, header said %d", source, read, size)
            self._source_content[source] = _ContentInfo(size=read, digest=digest.hexdigest())

        return consume

    def on_create(self, source: str, target: str, link: str, mode: int) -> None:
        """Record a path created by the extractor, replacing any previous record."""
        self._targets[target] = PathRecord(path=target, mode=mode, link=link)
        self._target_to_source[target] = source

    def add_target(self, target: str, link: str, mode: int, data: bytes | None = None) -> None:
        """Record a path created outside of the extractor.

        Missing ancestor records are synthesized as ``0755`` directories.

        Args:
            target: Absolute path of the created entry.
            link: Symlink target, or an empty string.
            mode: File type and permission bits.
            data: Content of a regular file, used for the digest.
        """
        record = PathRecord(path=target, mode=mode, link=link)
        if data is not None:
            record.size = len(data)
            record.sha256 = compute_digest(data)
        self._targets[target] = record

        parent = parent_dir(target)
        while parent != "/" and parent not in self._targets:
            self._targets[parent] = PathRecord(path=parent, mode=DEFAULT_DIR_MODE)
            parent = parent_dir(parent)

    def remove_target(self, target: str) -> None:
        """Forget a recorded path."""
        self._targets.pop(target, None)

    def mark_mutated(self, target: str) -> None:
        """Flag a path whose content may change after extraction."""
        self._mutated.add(target)

    def update_targets(self, root: Path) -> None:
        """Finalize every record.

        Attaches digests, resolves slice ownership and re-hashes mutated
        files found under ``root``.

        Raises:
            OSError: If a mutated file cannot be read back.
        """
        for path in sorted(self._targets):
            self._complete_target(self._targets[path])
        for path in sorted(self._mutated):
            record = self._targets.get(path)
            if record is not None:
                self._refresh_target(record, root)

    def update_db(self, write: WriteRecord) -> None:
        """Emit every record through a sink, in path order.

        Each path record is followed by one content record per owning
        slice. Exceptions raised by the sink propagate unchanged.
        """
        for record in self.records():
            write(record)
            for slice_name in record.slices:
                write(ContentRecord(slice=slice_name, path=record.path))

    def records(self) -> list[PathRecord]:
        """Return the recorded paths sorted by path."""
        return [self._targets[path] for path in sorted(self._targets)]

    # === Private helpers ===

    def _complete_target(self, record: PathRecord) -> None:
        record.mode = stat.S_IMODE(record.mode)

        source = self._target_to_source.get(record.path)
        content = self._source_content.get(source) if source is not None else None
        if content is not None:
            record.size = content.size
            record.sha256 = content.digest

        slices = list(self._path_slices.get(record.path, []))
        for glob, glob_slices in self._glob_slices.items():
            if glob_path(glob, record.path):
                for slice_name in glob_slices:
                    add_sorted(slices, slice_name)

        current: PathRecord | None = record
        while slices and current is not None:
            slices = [s for s in slices if current.add_slice(s)]
            if current.path == "/":
                break
            current = self._targets.get(parent_dir(current.path))

    def _refresh_target(self, record: PathRecord, root: Path) -> None:
        if not record.sha256:
            return
        data = (root / record.path.lstrip("/")).read_bytes()
        final = compute_digest(data)
        if final != record.sha256:
            logger.debug("Content of %s changed after mutation", record.path)
            record.final_sha256 = final
