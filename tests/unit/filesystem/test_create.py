"""Unit tests for the filesystem creation primitive."""

import io
import os
import stat
from pathlib import Path

import pytest
from debslice.filesystem.create import CreateOptions, create, make_dirs


class TestCreate:
    """Tests for create function."""

    def test_regular_file(self, tmp_path: Path) -> None:
        """Files are written with their content, parents and permissions."""
        path = tmp_path / "a/b/file"
        entry = create(CreateOptions(path=path, mode=stat.S_IFREG | 0o640, data=io.BytesIO(b"abc")))

        assert path.read_bytes() == b"abc"
        assert stat.S_IMODE(path.stat().st_mode) == 0o640
        assert path.parent.is_dir()
        assert entry.size == 3

    def test_special_bits_are_applied(self, tmp_path: Path) -> None:
        """Setuid bits survive creation."""
        path = tmp_path / "suid"
        create(CreateOptions(path=path, mode=stat.S_IFREG | 0o4755, data=io.BytesIO(b"")))
        assert stat.S_IMODE(path.stat().st_mode) == 0o4755

    def test_directory_is_idempotent(self, tmp_path: Path) -> None:
        """Creating a directory twice re-applies its mode."""
        path = tmp_path / "dir"
        create(CreateOptions(path=path, mode=stat.S_IFDIR | 0o755))
        create(CreateOptions(path=path, mode=stat.S_IFDIR | 0o1777))
        assert stat.S_IMODE(path.stat().st_mode) == 0o1777

    def test_symlink_replaces_existing(self, tmp_path: Path) -> None:
        """Symlinks replace files already at the path."""
        path = tmp_path / "link"
        path.write_text("old")
        create(CreateOptions(path=path, mode=stat.S_IFLNK | 0o777, link="target"))
        assert os.readlink(path) == "target"

    def test_file_replaces_symlink(self, tmp_path: Path) -> None:
        """Writing a file over a symlink does not follow it."""
        target = tmp_path / "target"
        target.write_text("keep")
        path = tmp_path / "link"
        path.symlink_to(target)

        create(CreateOptions(path=path, mode=stat.S_IFREG | 0o644, data=io.BytesIO(b"new")))

        assert not path.is_symlink()
        assert path.read_bytes() == b"new"
        assert target.read_text() == "keep"

    def test_unsupported_type(self, tmp_path: Path) -> None:
        """Device nodes are not created."""
        with pytest.raises(ValueError, match="unsupported file type"):
            create(CreateOptions(path=tmp_path / "dev", mode=stat.S_IFCHR | 0o600))


class TestMakeDirs:
    """Tests for make_dirs function."""

    def test_existing_directory(self, tmp_path: Path) -> None:
        """Existing directories are accepted."""
        make_dirs(tmp_path)
        make_dirs(tmp_path / "x/y")
        make_dirs(tmp_path / "x/y")
        assert (tmp_path / "x/y").is_dir()

    def test_file_in_the_way(self, tmp_path: Path) -> None:
        """A file where a directory is needed fails."""
        (tmp_path / "f").write_text("")
        with pytest.raises(OSError):
            make_dirs(tmp_path / "f/sub")
