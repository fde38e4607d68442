"""Tests for run CLI command."""

import logging
import os
import signal
from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner

from subcheck_cli.cli.exit_codes import ExitCode
from subcheck_cli.cli.run import _setup_logging, app
from subcheck_cli.daemon.pid import PIDFile
from subcheck_cli.lifecycle.manager import LifecycleReport
from subcheck_cli.validation.probe import ValidationRoundError
from subcheck_cli.validation.results import RoundResult

runner = CliRunner()


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Config file plus an isolated data directory for the PID file."""
    config = tmp_path / "config.yaml"
    config.write_text("sub-urls:\n  - https://a.example/sub\ncheck-interval: 30\n")
    data_dir = tmp_path / "data"
    monkeypatch.setenv("SUBCHECK_DATA_DIR", str(data_dir))
    return config, PIDFile(data_dir / "subcheck.pid")


class TestSetupLogging:
    """Tests for _setup_logging function."""

    def test_verbose_uses_debug(self, tmp_path):
        _setup_logging(verbose=True, log_file=tmp_path / "test.log")

        assert logging.getLogger().level == logging.DEBUG

    def test_level_from_config(self):
        _setup_logging(verbose=False, level_name="warning")

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        _setup_logging(verbose=False, level_name="chatty")

        assert logging.getLogger().level == logging.INFO

    def test_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "subdir" / "test.log"

        _setup_logging(verbose=False, log_file=log_file)

        assert log_file.parent.exists()


class TestRunCommand:
    """Tests for the run command."""

    def test_run_help(self):
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "--daemon" in result.output
        assert "trigger" in result.output

    def test_refuses_second_instance(self, env):
        config, pid_file = env
        pid_file.create()

        result = runner.invoke(app, ["--config", str(config)])

        assert result.exit_code == ExitCode.DAEMON_ERROR
        assert "already running" in result.output


class TestStatus:
    def test_not_running(self, env):
        config, _ = env

        result = runner.invoke(app, ["status", "--config", str(config)])

        assert result.exit_code == 0
        assert "not running" in result.output

    def test_running(self, env):
        config, pid_file = env
        pid_file.create()

        result = runner.invoke(app, ["status", "--config", str(config)])

        assert result.exit_code == 0
        assert "Daemon is running" in result.output


class TestStop:
    def test_no_pid_file(self, env):
        config, _ = env

        result = runner.invoke(app, ["stop", "--config", str(config)])

        assert result.exit_code == 0
        assert "not running" in result.output

    def test_sends_sigterm(self, env):
        config, pid_file = env
        pid_file.path.parent.mkdir(parents=True)
        pid_file.path.write_text("4242")

        with patch("subcheck_cli.cli.run.os.kill") as mock_kill:
            result = runner.invoke(app, ["stop", "--config", str(config)])

        assert result.exit_code == 0
        mock_kill.assert_called_with(4242, signal.SIGTERM)


class TestTrigger:
    def test_not_running(self, env):
        config, _ = env

        result = runner.invoke(app, ["trigger", "--config", str(config)])

        assert result.exit_code == ExitCode.DAEMON_ERROR

    @pytest.mark.skipif(not hasattr(signal, "SIGUSR1"), reason="needs SIGUSR1")
    def test_sends_sigusr1(self, env):
        config, pid_file = env
        pid_file.path.parent.mkdir(parents=True)
        pid_file.path.write_text("4242")

        with patch("subcheck_cli.cli.run.os.kill") as mock_kill:
            result = runner.invoke(app, ["trigger", "--config", str(config)])

        assert result.exit_code == 0
        mock_kill.assert_called_with(4242, signal.SIGUSR1)


class TestOnce:
    def test_prints_summary(self, env):
        config, _ = env
        round_result = RoundResult()
        round_result.add_success("https://a.example/sub")
        round_result.add_failure("https://b.example/sub", "HTTP 404")
        service = Mock()
        service.run_once.return_value = (round_result, LifecycleReport(recorded=2))

        with patch("subcheck_cli.daemon.service.SubcheckDaemon", return_value=service):
            result = runner.invoke(app, ["once", "--config", str(config)])

        assert result.exit_code == 0
        assert "1 ok, 1 failed" in result.output

    def test_unreadable_config(self, env):
        config, _ = env
        service = Mock()
        service.run_once.side_effect = ValidationRoundError("cannot read")

        with patch("subcheck_cli.daemon.service.SubcheckDaemon", return_value=service):
            result = runner.invoke(app, ["once", "--config", str(config)])

        assert result.exit_code == ExitCode.VALIDATION_ERROR
