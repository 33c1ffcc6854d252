"""Unit tests for selection file loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
import typer
from debslice.core.selection import (
    SelectionNotFoundError,
    SelectionParseError,
    SelectionValidationError,
    load_selection,
    require_selection,
)

VALID_SELECTION = """
[packages.hello.slices.bins.contents]
"/usr/bin/hello" = {}
"/usr/bin/hallo" = { copy = "/usr/bin/hello", mode = 0o700 }

[packages.hello.slices.docs.contents]
"/usr/share/doc/**" = { optional = true }
"""


class TestLoadSelection:
    """Tests for load_selection function."""

    def test_load_valid(self, tmp_path: Path) -> None:
        """A valid file is parsed into models."""
        path = tmp_path / "slices.toml"
        path.write_text(VALID_SELECTION)

        selection = load_selection(path)

        bins = selection.packages["hello"].slices["bins"]
        assert bins.contents["/usr/bin/hallo"].copy_from == "/usr/bin/hello"
        assert bins.contents["/usr/bin/hallo"].mode == 0o700
        assert selection.slice_keys() == ["hello_bins", "hello_docs"]

    def test_not_found(self, tmp_path: Path) -> None:
        """A missing file raises SelectionNotFoundError."""
        with pytest.raises(SelectionNotFoundError):
            load_selection(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Invalid TOML raises SelectionParseError."""
        path = tmp_path / "slices.toml"
        path.write_text("[packages\n")
        with pytest.raises(SelectionParseError, match="Invalid TOML syntax"):
            load_selection(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Schema violations raise SelectionValidationError."""
        path = tmp_path / "slices.toml"
        path.write_text('[packages.hello.slices.bins.contents]\n"/a/*" = { copy = "/b" }\n')
        with pytest.raises(SelectionValidationError, match="Invalid selection content"):
            load_selection(path)

    def test_default_path(self, tmp_path: Path) -> None:
        """Without a path the XDG location is used."""
        config = tmp_path / "debslice"
        config.mkdir()
        (config / "slices.toml").write_text(VALID_SELECTION)
        with patch.dict("os.environ", {"XDG_CONFIG_HOME": str(tmp_path)}):
            selection = load_selection()
        assert "hello" in selection.packages


class TestRequireSelection:
    """Tests for require_selection function."""

    def test_exits_when_missing(self, tmp_path: Path) -> None:
        """A missing file exits with code 1."""
        with pytest.raises(typer.Exit) as exc_info:
            require_selection(tmp_path / "missing.toml")
        assert exc_info.value.exit_code == 1

    def test_exits_when_invalid(self, tmp_path: Path) -> None:
        """An invalid file exits with code 1."""
        path = tmp_path / "slices.toml"
        path.write_text("not toml = = =")
        with pytest.raises(typer.Exit):
            require_selection(path)
