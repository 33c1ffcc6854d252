"""Extraction of selected paths from a package payload.

The extractor streams the tar payload of a package once. Every entry is
matched against a target specification mapping source paths (as they
appear in the package) to one or more destinations. Glob keys select
entries by pattern and always extract them to their own path. Parent
directories are synthesized on demand, and every mandatory source path
that never shows up in the payload is reported in a single error.
"""

import io
import logging
import lzma
import os
import stat
import tarfile
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import zstandard

from debslice.deb.container import read_data_payload
from debslice.deb.errors import (
    ArchiveFormatError,
    ExtractError,
    ExtractSpecError,
    MissingContentError,
)
from debslice.filesystem.create import DEFAULT_DIR_MODE, CreateOptions, create
from debslice.utils.paths import glob_path, is_glob, parent_dir

logger = logging.getLogger(__name__)

# Consumes the full content of a regular file entry.
ConsumeData = Callable[[BinaryIO], None]
# Called with (source, size) for each regular file; may return a consumer.
DataCallback = Callable[[str, int], ConsumeData | None]
# Called with (source, target, link, mode) before each entry is created.
CreateCallback = Callable[[str, str, str, int], None]


@dataclass(frozen=True, slots=True)
class ExtractInfo:
    """A requested destination for a source path.

    Attributes:
        path: Absolute destination path; directories end with ``/``.
        mode: Permission bits replacing the source ones, 0 to keep them.
        optional: If True, the source path may be absent from the package.
    """

    path: str
    mode: int = 0
    optional: bool = False


@dataclass(slots=True)
class ExtractOptions:
    """Options for a single extraction run.

    Attributes:
        package: Package name, used in error messages.
        target_dir: Existing host directory receiving the content.
        extract: Target specification keyed by source path or glob.
        globbed: If set, receives the source paths matched by each glob.
        on_data: Callback observing regular file content.
        on_create: Callback observing every created path.
    """

    package: str
    target_dir: Path
    extract: dict[str, list[ExtractInfo]]
    globbed: dict[str, list[str]] | None = None
    on_data: DataCallback | None = None
    on_create: CreateCallback | None = None


@dataclass(slots=True)
class _DirInfo:
    mode: int = 0
    created: bool = False
    explicit: bool = False


def check_extract_options(options: ExtractOptions) -> None:
    """Validate a target specification before any content is read.

    Raises:
        ExtractSpecError: If a path is relative or the root, a source has
            no targets, or a glob source is remapped.
    """
    for source, infos in options.extract.items():
        _check_path(source)
        if not infos:
            msg = f"no targets for {source}"
            raise ExtractSpecError(msg)
        for info in infos:
            _check_path(info.path)
        if is_glob(source):
            for info in infos:
                if info.path != source or info.mode != 0:
                    msg = f"when using wildcards source and target paths must match: {source}"
                    raise ExtractSpecError(msg)


def _check_path(path: str) -> None:
    if not path.startswith("/") or path.strip("/") == "":
        msg = f"extract path must be absolute and not the root: {path!r}"
        raise ExtractSpecError(msg)


def extract(package: BinaryIO, options: ExtractOptions) -> None:
    """Extract selected content from a Debian package.

    Args:
        package: Binary stream of the ``.deb`` file.
        options: Extraction options.

    Raises:
        ExtractError: On any failure, with the package name attached. Errors
            raised by the extractor keep their class; others are wrapped.
    """
    logger.info("Extracting files from package %s", options.package)
    try:
        if not options.target_dir.is_dir():
            msg = f"target directory does not exist: {options.target_dir}"
            raise ExtractError(msg)
        check_extract_options(options)
        payload = read_data_payload(package)
        extract_data(payload, options)
    except ExtractError as e:
        e.add_package(options.package)
        raise
    except (OSError, ValueError) as e:
        msg = f'cannot extract from package "{options.package}": {e}'
        raise ExtractError(msg, package=options.package) from e


def extract_data(data: BinaryIO, options: ExtractOptions) -> None:
    """Extract selected content from an uncompressed tar stream.

    Args:
        data: Tar stream whose member names start with ``./``.
        options: Extraction options.

    Raises:
        ExtractSpecError: If the target specification is invalid.
        ArchiveFormatError: If the tar stream is malformed.
        MissingContentError: If mandatory paths were not found.
        OSError: If content cannot be written.
    """
    context = _ExtractContext(options)
    old_umask = os.umask(0)
    try:
        context.run(data)
    finally:
        os.umask(old_umask)


class _ExtractContext:
    """State of one extraction run: pending paths and created directories."""

    def __init__(self, options: ExtractOptions) -> None:
        check_extract_options(options)
        self._options = options
        self._targets: dict[str, list[ExtractInfo]] = dict(options.extract)
        self._pending: set[str] = set()
        self._globs: list[str] = []
        self._dirs: dict[str, _DirInfo] = {}
        self._files: dict[str, Path] = {}

        for source, infos in options.extract.items():
            if any(not info.optional for info in infos):
                self._pending.add(source)
            if is_glob(source):
                self._globs.append(source)
                continue
            for info in infos:
                if info.optional:
                    self._seed_optional_parents(info.path)
        self._globs.sort()

    def _seed_optional_parents(self, path: str) -> None:
        parent = parent_dir(path)
        while parent != "/":
            if parent not in self._targets:
                self._targets[parent] = [ExtractInfo(path=parent, optional=True)]
            parent = parent_dir(parent)

    def run(self, data: BinaryIO) -> None:
        try:
            with tarfile.open(fileobj=data, mode="r|") as tar:
                for member in tar:
                    self._process(tar, member)
        except (tarfile.TarError, lzma.LZMAError, zstandard.ZstdError, EOFError) as e:
            raise ArchiveFormatError(f"cannot read package payload: {e}") from e

        if self._pending:
            raise MissingContentError(sorted(self._pending), package=self._options.package)

    def _process(self, tar: tarfile.TarFile, member: tarfile.TarInfo) -> None:
        name = member.name + "/" if member.isdir() else member.name
        if len(name) < 3 or not name.startswith("./"):
            return
        source = name[1:]
        source_mode = _member_mode(member)

        destinations = self._match(source)

        if not destinations and stat.S_ISDIR(source_mode):
            info = self._dirs.setdefault(source, _DirInfo())
            if info.mode != source_mode:
                if not (info.created and info.explicit):
                    info.mode = source_mode
                if info.created and not info.explicit:
                    # Re-apply the packaged mode to a synthesized parent.
                    destinations[source] = 0

        if not destinations:
            return

        if stat.S_IFMT(source_mode) == 0:
            msg = f"unsupported entry type for {source}"
            raise ArchiveFormatError(msg)

        logger.debug("Extracting %s to %s", source, ", ".join(destinations))
        open_content = self._read_content(tar, member, source, len(destinations))

        link = member.linkname if member.issym() else ""
        for target, override in destinations.items():
            self._create_parents(target)
            mode = source_mode
            if override:
                mode = stat.S_IFMT(source_mode) | (override & 0o7777)
            if self._options.on_create is not None:
                self._options.on_create(source, target, link, mode)
            create(
                CreateOptions(
                    path=self._host_path(target),
                    mode=mode,
                    data=open_content(),
                    link=link,
                )
            )
            if stat.S_ISDIR(mode):
                self._dirs[target] = _DirInfo(mode=mode, created=True, explicit=True)
            elif stat.S_ISREG(mode):
                self._files.setdefault(source, self._host_path(target))

    def _match(self, source: str) -> dict[str, int]:
        """Collect destinations for a source path with their mode overrides."""
        destinations: dict[str, int] = {}

        infos = self._targets.get(source)
        if infos and not is_glob(source):
            self._pending.discard(source)
            for info in infos:
                if info.mode or info.path not in destinations:
                    destinations[info.path] = info.mode

        for glob in self._globs:
            if not glob_path(glob, source):
                continue
            if self._options.globbed is not None:
                self._options.globbed.setdefault(glob, []).append(source)
            self._pending.discard(glob)
            destinations.setdefault(source, 0)

        return destinations

    def _read_content(
        self,
        tar: tarfile.TarFile,
        member: tarfile.TarInfo,
        source: str,
        consumers: int,
    ) -> Callable[[], BinaryIO | None]:
        """Prepare content for each destination of a regular file.

        Content is buffered when several destinations or a data observer
        need it; otherwise the single destination reads the stream directly.
        """
        if member.islnk():
            linked = self._link_content(member)
            stream: BinaryIO | None = io.BytesIO(linked)
            size = len(linked)
        elif member.isreg():
            stream = tar.extractfile(member)
            size = member.size
        else:
            return lambda: None

        consume: ConsumeData | None = None
        if self._options.on_data is not None:
            consume = self._options.on_data(source, size)

        if stream is None or (consume is None and consumers == 1):
            return lambda: stream

        content = stream.read()
        if consume is not None:
            consume(io.BytesIO(content))
        return lambda: io.BytesIO(content)

    def _link_content(self, member: tarfile.TarInfo) -> bytes:
        """Read the content of the file a hard link points to.

        Hard links are created as regular files holding the content of
        their target, which must have been extracted earlier in the stream.
        """
        target = "/" + member.linkname.removeprefix("./").lstrip("/")
        host = self._files.get(target)
        if host is None:
            logger.warning(
                "Hard link %s points to %s, which was not extracted; creating it empty",
                member.name,
                target,
            )
            return b""
        return host.read_bytes()

    def _create_parents(self, path: str) -> None:
        parent = parent_dir(path)
        if parent == "/":
            return
        info = self._dirs.setdefault(parent, _DirInfo())
        if info.created:
            return
        source = parent
        if info.mode == 0:
            info.mode = DEFAULT_DIR_MODE
            source = ""
        self._create_parents(parent)
        if self._options.on_create is not None:
            self._options.on_create(source, parent, "", info.mode)
        create(CreateOptions(path=self._host_path(parent), mode=info.mode))
        info.created = True

    def _host_path(self, path: str) -> Path:
        return self._options.target_dir / path.lstrip("/")


def _member_mode(member: tarfile.TarInfo) -> int:
    """Combine the file type of a tar member with its permission bits."""
    if member.isdir():
        file_type = stat.S_IFDIR
    elif member.issym():
        file_type = stat.S_IFLNK
    elif member.isreg() or member.islnk():
        file_type = stat.S_IFREG
    else:
        file_type = 0
    return file_type | (member.mode & 0o7777)
