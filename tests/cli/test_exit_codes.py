"""Tests for exit codes module."""

from subcheck_cli.cli.exit_codes import ExitCode


class TestExitCode:
    """Test exit code constants."""

    def test_success_code(self) -> None:
        assert ExitCode.SUCCESS == 0

    def test_validation_error_is_nonzero(self) -> None:
        """A fatal validation round must end the process with a failure code."""
        assert ExitCode.VALIDATION_ERROR != 0

    def test_codes_are_unique(self) -> None:
        codes = [
            ExitCode.SUCCESS,
            ExitCode.GENERAL_ERROR,
            ExitCode.CONFIGURATION_ERROR,
            ExitCode.VALIDATION_ERROR,
            ExitCode.LIFECYCLE_ERROR,
            ExitCode.DAEMON_ERROR,
            ExitCode.INVALID_ARGUMENT,
            ExitCode.NOT_FOUND,
            ExitCode.CANCELLED,
        ]
        assert len(codes) == len(set(codes))

    def test_cancelled_code(self) -> None:
        assert ExitCode.CANCELLED == 130


class TestExitCodeHelpers:
    """Test get_name and get_description."""

    def test_get_name(self) -> None:
        assert ExitCode.get_name(ExitCode.DAEMON_ERROR) == "DAEMON_ERROR"

    def test_get_name_unknown(self) -> None:
        assert ExitCode.get_name(99) == "UNKNOWN(99)"

    def test_get_description(self) -> None:
        assert "cancelled" in ExitCode.get_description(ExitCode.CANCELLED)

    def test_get_description_unknown(self) -> None:
        assert ExitCode.get_description(99) == "Unknown exit code: 99"
