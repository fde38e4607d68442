"""Tests for subs CLI command."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from subcheck_cli.cli.exit_codes import ExitCode
from subcheck_cli.cli.subs import app

runner = CliRunner()


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.setenv("SUBCHECK_DATA_DIR", str(tmp_path / "data"))
    path = tmp_path / "config.yaml"
    path.write_text(
        "sub-urls:\n"
        "  - https://a.example/sub\n"
        "  - https://b.example/sub\n"
        "sub-urls-fail-remove: 3\n"
    )
    (tmp_path / "subs_state.json").write_text(json.dumps({
        "fail_counts": {"https://a.example/sub": 2, "https://gone.example/sub": 1},
    }))
    return path


def counts(config):
    return json.loads((config.parent / "subs_state.json").read_text())["fail_counts"]


class TestList:
    def test_shows_configured_and_tracked(self, config):
        result = runner.invoke(app, ["list", "--config", str(config)])

        assert result.exit_code == 0
        assert "https://b.example/sub" in result.output
        assert "not configured" in result.output

    def test_empty(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUBCHECK_DATA_DIR", str(tmp_path / "data"))
        path = tmp_path / "config.yaml"
        path.write_text("check-interval: 5\n")

        result = runner.invoke(app, ["list", "--config", str(path)])

        assert result.exit_code == 0
        assert "No subscriptions" in result.output


class TestReset:
    def test_forgets_entry(self, config):
        result = runner.invoke(app, ["reset", "https://a.example/sub", "--config", str(config)])

        assert result.exit_code == 0
        assert counts(config) == {"https://gone.example/sub": 1}

    def test_unknown_entry(self, config):
        result = runner.invoke(app, ["reset", "https://zzz.example/sub", "--config", str(config)])

        assert result.exit_code == ExitCode.NOT_FOUND


class TestRemove:
    def test_removes_from_config_and_ledger(self, config):
        result = runner.invoke(app, ["remove", "https://a.example/sub", "--config", str(config)])

        assert result.exit_code == 0
        assert yaml.safe_load(config.read_text())["sub-urls"] == ["https://b.example/sub"]
        assert "https://a.example/sub" not in counts(config)

    def test_nothing_matched(self, config):
        before = config.read_bytes()

        result = runner.invoke(app, ["remove", "https://zzz.example/sub", "--config", str(config)])

        assert result.exit_code == ExitCode.NOT_FOUND
        assert config.read_bytes() == before

    def test_malformed_list(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SUBCHECK_DATA_DIR", str(tmp_path / "data"))
        path = tmp_path / "config.yaml"
        path.write_text("sub-urls: https://a.example/sub\n")

        result = runner.invoke(app, ["remove", "https://a.example/sub", "--config", str(path)])

        assert result.exit_code == ExitCode.LIFECYCLE_ERROR
