"""Filesystem creation primitive used by the extractor.

Creates regular files, directories and symlinks with explicit permission
bits. Directory creation is idempotent so that independent extractions
sharing a destination root may create the same parents.
"""

import logging
import os
import shutil
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_DIR_MODE = stat.S_IFDIR | 0o755


@dataclass(frozen=True, slots=True)
class CreateOptions:
    """Description of a filesystem entry to create.

    Attributes:
        path: Host path of the entry.
        mode: File type and permission bits (as in ``st_mode``).
        data: Content source for regular files.
        link: Symlink target; only used when ``mode`` is a symlink.
    """

    path: Path
    mode: int
    data: BinaryIO | None = None
    link: str = ""


@dataclass(frozen=True, slots=True)
class CreatedEntry:
    """Result of a create call.

    Attributes:
        path: Host path that was created.
        mode: Mode the entry was created with.
        size: Number of bytes written for regular files, 0 otherwise.
    """

    path: Path
    mode: int
    size: int = 0


def create(options: CreateOptions) -> CreatedEntry:
    """Create a filesystem entry, making missing parents first.

    Args:
        options: What to create and where.

    Returns:
        CreatedEntry describing the result.

    Raises:
        ValueError: If the mode is not a file, directory or symlink.
        OSError: If the entry cannot be created.
    """
    path = options.path
    mode = options.mode
    make_dirs(path.parent)

    if stat.S_ISDIR(mode):
        _create_dir(path, mode)
        return CreatedEntry(path=path, mode=mode)

    if stat.S_ISLNK(mode):
        _create_symlink(path, options.link)
        return CreatedEntry(path=path, mode=mode)

    if stat.S_ISREG(mode) or stat.S_IFMT(mode) == 0:
        size = _create_file(path, mode, options.data)
        return CreatedEntry(path=path, mode=mode, size=size)

    msg = f"unsupported file type {stat.S_IFMT(mode):#o} for {path}"
    raise ValueError(msg)


def make_dirs(path: Path, mode: int = DEFAULT_DIR_MODE) -> None:
    """Create a directory and its parents, tolerating existing ones."""
    if path.is_dir():
        return
    make_dirs(path.parent, mode)
    try:
        path.mkdir(mode=stat.S_IMODE(mode))
    except FileExistsError:
        # Created concurrently by another extraction.
        if not path.is_dir():
            raise


def _create_dir(path: Path, mode: int) -> None:
    try:
        path.mkdir(mode=stat.S_IMODE(mode))
    except FileExistsError:
        if not path.is_dir() or path.is_symlink():
            raise
    os.chmod(path, stat.S_IMODE(mode))
    logger.debug("Created directory %s (%#o)", path, stat.S_IMODE(mode))


def _create_symlink(path: Path, link: str) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    os.symlink(link, path)
    logger.debug("Created symlink %s -> %s", path, link)


def _create_file(path: Path, mode: int, data: BinaryIO | None) -> int:
    if path.is_symlink():
        path.unlink()
    perm = stat.S_IMODE(mode)
    with open(path, "wb", opener=lambda p, flags: os.open(p, flags, perm)) as f:
        if data is not None:
            shutil.copyfileobj(data, f)
        size = f.tell()
    # setuid/setgid/sticky bits are not honoured by open()
    os.chmod(path, perm)
    logger.debug("Created file %s (%#o, %d bytes)", path, perm, size)
    return size
