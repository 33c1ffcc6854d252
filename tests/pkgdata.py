"""Builders for test package payloads.

Tar payloads and Debian packages are assembled in memory from a list of
entries, so tests describe package content next to their assertions.
"""

import bz2
import gzip
import io
import lzma
import tarfile
from collections.abc import Callable
from dataclasses import dataclass

import zstandard


@dataclass(frozen=True)
class TarEntry:
    """An entry of a test tar payload."""

    name: str
    kind: str = "file"
    mode: int = 0o644
    content: bytes = b""
    link: str = ""


def dir_entry(name: str, mode: int = 0o755) -> TarEntry:
    return TarEntry(name=name, kind="dir", mode=mode)


def file_entry(name: str, content: bytes = b"", mode: int = 0o644) -> TarEntry:
    return TarEntry(name=name, content=content, mode=mode)


def symlink_entry(name: str, link: str) -> TarEntry:
    return TarEntry(name=name, kind="symlink", mode=0o777, link=link)


def build_tar(entries: list[TarEntry]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT) as tar:
        for entry in entries:
            info = tarfile.TarInfo(entry.name)
            info.mode = entry.mode
            if entry.kind == "dir":
                info.type = tarfile.DIRTYPE
            elif entry.kind == "symlink":
                info.type = tarfile.SYMTYPE
                info.linkname = entry.link
            elif entry.kind == "hardlink":
                info.type = tarfile.LNKTYPE
                info.linkname = entry.link
            elif entry.kind == "fifo":
                info.type = tarfile.FIFOTYPE
            else:
                info.size = len(entry.content)
                tar.addfile(info, io.BytesIO(entry.content))
                continue
            tar.addfile(info)
    return buf.getvalue()


def _ar_member(name: str, data: bytes) -> bytes:
    header = (
        f"{name + '/':<16}"
        f"{0:<12}"
        f"{0:<6}"
        f"{0:<6}"
        f"{'100644':<8}"
        f"{len(data):<10}"
        "`\n"
    ).encode("ascii")
    return header + data + (b"\n" if len(data) % 2 else b"")


_COMPRESSORS: dict[str, Callable[[bytes], bytes]] = {
    "": lambda data: data,
    ".gz": gzip.compress,
    ".xz": lzma.compress,
    ".bz2": bz2.compress,
    ".zst": lambda data: zstandard.ZstdCompressor().compress(data),
}


def build_deb(data_tar: bytes, compression: str = ".gz") -> bytes:
    control = gzip.compress(build_tar([file_entry("./control", b"Package: test\n")]))
    payload = _COMPRESSORS[compression](data_tar)
    return (
        b"!<arch>\n"
        + _ar_member("debian-binary", b"2.0\n")
        + _ar_member("control.tar.gz", control)
        + _ar_member(f"data.tar{compression}", payload)
    )


SAMPLE_ENTRIES = [
    dir_entry("./"),
    dir_entry("./bin/"),
    symlink_entry("./bin/sh", "../usr/bin/hello"),
    dir_entry("./etc/"),
    file_entry("./etc/os-release", b"ID=test\n"),
    dir_entry("./tmp/", 0o1777),
    dir_entry("./usr/"),
    dir_entry("./usr/bin/"),
    file_entry("./usr/bin/hello", b"hello world\n", 0o775),
    file_entry("./usr/bin/hallo", b"hallo welt\n", 0o755),
    dir_entry("./usr/share/"),
    dir_entry("./usr/share/doc/"),
    dir_entry("./usr/share/doc/hello/"),
    file_entry("./usr/share/doc/hello/copyright", b"copyright\n"),
    file_entry("./usr/share/doc/hello/README", b"readme\n"),
]
