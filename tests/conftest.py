"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules: builders for
tar payloads and Debian packages, and a small sample package.
"""

import io
from collections.abc import Callable
from pathlib import Path

import pytest
from pkgdata import SAMPLE_ENTRIES, TarEntry, build_deb, build_tar


@pytest.fixture
def make_tar() -> Callable[[list[TarEntry]], io.BytesIO]:
    """Build an uncompressed tar stream from entries."""

    def make(entries: list[TarEntry]) -> io.BytesIO:
        return io.BytesIO(build_tar(entries))

    return make


@pytest.fixture
def make_deb(tmp_path: Path) -> Callable[..., Path]:
    """Write a Debian package built from tar entries and return its path."""

    def make(entries: list[TarEntry], name: str = "test", compression: str = ".gz") -> Path:
        path = tmp_path / f"{name}.deb"
        path.write_bytes(build_deb(build_tar(entries), compression))
        return path

    return make


@pytest.fixture
def sample_tar() -> io.BytesIO:
    """Tar stream of the sample package."""
    return io.BytesIO(build_tar(SAMPLE_ENTRIES))


@pytest.fixture
def sample_deb(make_deb: Callable[..., Path]) -> Path:
    """Path of the sample package file."""
    return make_deb(SAMPLE_ENTRIES, name="hello")


@pytest.fixture
def root_dir(tmp_path: Path) -> Path:
    """Empty destination directory."""
    path = tmp_path / "root"
    path.mkdir()
    return path
