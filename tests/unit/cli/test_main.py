"""Unit tests for the main CLI application."""

from debslice import __version__
from debslice.cli.main import app
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"debslice version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """Help lists every command."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "cut" in result.stdout
        assert "query" in result.stdout
