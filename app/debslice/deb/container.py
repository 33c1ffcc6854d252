"""Debian package container decoding.

A ``.deb`` file is an ``ar`` archive holding ``debian-binary``, a control
tarball and a ``data.tar`` payload that may be compressed with gzip, xz,
bzip2 or zstd. This module locates the payload member and returns a
decompressed stream positioned at the start of the tar data.
"""

import bz2
import gzip
import logging
import lzma
from collections.abc import Iterator
from typing import BinaryIO, cast

import arpy
import zstandard

from debslice.deb.errors import ArchiveFormatError

logger = logging.getLogger(__name__)


def iter_members(stream: BinaryIO) -> Iterator[tuple[str, BinaryIO]]:
    """Yield the name and a reader of each member of an ``ar`` archive.

    Args:
        stream: Seekable binary stream positioned at the start of the archive.

    Raises:
        ArchiveFormatError: If the stream is not a valid ``ar`` archive.
    """
    try:
        archive = arpy.Archive(fileobj=stream)
        for member in archive:
            # GNU ar terminates names with a slash
            name = member.header.name.decode("ascii", "replace").strip().removesuffix("/")
            yield name, cast(BinaryIO, member)
    except arpy.ArchiveFormatError as e:
        raise ArchiveFormatError(f"not a valid ar archive: {e}") from e


def open_payload(member_name: str, stream: BinaryIO) -> BinaryIO | None:
    """Wrap a ``data.tar*`` member with the matching decompressor.

    Args:
        member_name: Name of the ``ar`` member.
        stream: Reader over the member content.

    Returns:
        A decompressed stream, or None if the member is not a payload.

    Raises:
        ArchiveFormatError: If the payload uses an unsupported codec.
    """
    if not member_name.startswith("data.tar"):
        return None
    suffix = member_name.removeprefix("data.tar")
    if suffix == "":
        return stream
    if suffix == ".gz":
        return gzip.GzipFile(fileobj=stream, mode="rb")
    if suffix == ".xz":
        return lzma.LZMAFile(stream, mode="rb")
    if suffix == ".bz2":
        return bz2.BZ2File(stream, mode="rb")
    if suffix == ".zst":
        return zstandard.ZstdDecompressor().stream_reader(stream)  # type: ignore[return-value]
    msg = f"unsupported data payload compression: {member_name}"
    raise ArchiveFormatError(msg)


def read_data_payload(stream: BinaryIO) -> BinaryIO:
    """Locate and decompress the data payload of a Debian package.

    Members before the payload are skipped; the returned stream reads
    straight from ``stream`` and must be consumed before it is reused.

    Args:
        stream: Binary stream positioned at the start of the ``.deb`` file.

    Returns:
        Stream of uncompressed tar data.

    Raises:
        ArchiveFormatError: If the container is malformed or has no payload.
    """
    for name, content in iter_members(stream):
        payload = open_payload(name, content)
        if payload is None:
            logger.debug("Skipping package member %s", name)
            continue
        logger.debug("Reading data payload %s", name)
        return payload
    msg = "no data payload"
    raise ArchiveFormatError(msg)
