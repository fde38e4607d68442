"""Tests for the top-level CLI."""

from typer.testing import CliRunner

from subcheck_cli import __version__
from subcheck_cli.cli.exit_codes import ExitCode
from subcheck_cli.main import app

runner = CliRunner()


class TestMain:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_command_groups_registered(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for group in ("run", "subs", "config"):
            assert group in result.output

    def test_quiet_and_verbose_conflict(self):
        result = runner.invoke(app, ["--quiet", "--verbose", "config", "path"])

        assert result.exit_code == ExitCode.INVALID_ARGUMENT
