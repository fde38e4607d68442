"""Tests for PID file management."""

import os
from unittest.mock import patch

from subcheck_cli.daemon.pid import PIDFile


class TestPIDFile:
    """Tests for PIDFile class."""

    def test_create_pid_file(self, tmp_path):
        """Test creating a PID file."""
        pid_file = PIDFile(tmp_path / "subcheck.pid")

        pid_file.create()

        assert pid_file.path.exists()
        assert pid_file.read() == os.getpid()

    def test_create_creates_parent_directories(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subdir" / "subcheck.pid")

        pid_file.create()

        assert pid_file.path.exists()

    def test_read_nonexistent_file(self, tmp_path):
        assert PIDFile(tmp_path / "nonexistent.pid").read() is None

    def test_read_invalid_content(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.path.write_text("invalid")

        assert pid_file.read() is None

    def test_remove_pid_file(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.create()

        pid_file.remove()

        assert not pid_file.path.exists()

    def test_remove_nonexistent_file(self, tmp_path):
        """Removing a missing file does not raise."""
        PIDFile(tmp_path / "nonexistent.pid").remove()

    def test_is_running_with_current_process(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.create()

        assert pid_file.is_running() is True

    def test_is_running_with_stale_pid(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.path.write_text("4242")

        with patch("subcheck_cli.daemon.pid.os.kill", side_effect=ProcessLookupError):
            assert pid_file.is_running() is False

    def test_clear_if_stale_with_running_process(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.create()

        assert pid_file.clear_if_stale() is False
        assert pid_file.path.exists()

    def test_clear_if_stale_with_stale_pid(self, tmp_path):
        pid_file = PIDFile(tmp_path / "subcheck.pid")
        pid_file.path.write_text("4242")

        with patch("subcheck_cli.daemon.pid.os.kill", side_effect=ProcessLookupError):
            assert pid_file.clear_if_stale() is True
        assert not pid_file.path.exists()

    def test_clear_if_stale_with_no_file(self, tmp_path):
        assert PIDFile(tmp_path / "nonexistent.pid").clear_if_stale() is False
