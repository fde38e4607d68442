"""Tests for config CLI command."""

import pytest
from typer.testing import CliRunner

from subcheck_cli.cli.config import app
from subcheck_cli.cli.exit_codes import ExitCode

runner = CliRunner()


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("SUBCHECK_CHECK_INTERVAL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("sub-urls:\n  - https://a.example/sub\ncheck-interval: 30\n")
    return path


class TestShow:
    def test_table(self, config):
        result = runner.invoke(app, ["show", "--config", str(config)])

        assert result.exit_code == 0
        assert "interval(30m)" in result.output

    def test_json(self, config):
        result = runner.invoke(app, ["show", "--config", str(config), "--format", "json"])

        assert result.exit_code == 0
        assert '"check_interval": 30' in result.output

    def test_unknown_format(self, config):
        result = runner.invoke(app, ["show", "--config", str(config), "--format", "xml"])

        assert result.exit_code == ExitCode.INVALID_ARGUMENT


class TestValidate:
    def test_valid(self, config):
        result = runner.invoke(app, ["validate", "--config", str(config)])

        assert result.exit_code == 0
        assert "valid" in result.output

    def test_non_positive_interval(self, config):
        config.write_text("sub-urls: []\ncheck-interval: 0\n")

        result = runner.invoke(app, ["validate", "--config", str(config)])

        assert result.exit_code == ExitCode.CONFIGURATION_ERROR

    def test_unparsable_file(self, config):
        config.write_text("sub-urls: [broken\n")

        result = runner.invoke(app, ["validate", "--config", str(config)])

        assert result.exit_code == ExitCode.CONFIGURATION_ERROR


class TestPath:
    def test_reports_existence(self, config):
        result = runner.invoke(app, ["path", "--config", str(config)])

        assert result.exit_code == 0
        assert "True" in result.output
