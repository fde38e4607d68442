"""Tests for error handler module."""

import pytest
import typer

from subcheck_cli.cli.error_handler import (
    ConfigurationError,
    DaemonError,
    LifecycleCommandError,
    NotFoundError,
    SubcheckError,
    handle_errors,
)
from subcheck_cli.cli.exit_codes import ExitCode


class TestSubcheckError:
    """Test base SubcheckError class."""

    def test_basic_error(self) -> None:
        error = SubcheckError("Test error")
        assert error.message == "Test error"
        assert error.exit_code == ExitCode.GENERAL_ERROR
        assert error.details == {}

    def test_error_with_exit_code(self) -> None:
        error = SubcheckError("Test error", exit_code=ExitCode.VALIDATION_ERROR)
        assert error.exit_code == ExitCode.VALIDATION_ERROR

    def test_error_str_with_details(self) -> None:
        error = SubcheckError("Test error", details={"key": "value"})
        assert "Test error" in str(error)
        assert "key=value" in str(error)


class TestSubclassExitCodes:
    @pytest.mark.parametrize(
        "error_class, code",
        [
            (ConfigurationError, ExitCode.CONFIGURATION_ERROR),
            (LifecycleCommandError, ExitCode.LIFECYCLE_ERROR),
            (DaemonError, ExitCode.DAEMON_ERROR),
            (NotFoundError, ExitCode.NOT_FOUND),
        ],
    )
    def test_default_exit_code(self, error_class, code) -> None:
        assert error_class("boom").exit_code == code


class TestHandleErrors:
    """Test the handle_errors decorator."""

    def test_passes_return_value(self) -> None:
        @handle_errors
        def command():
            return 42

        assert command() == 42

    def test_subcheck_error_maps_to_exit(self) -> None:
        @handle_errors
        def command():
            raise NotFoundError("missing")

        with pytest.raises(typer.Exit) as exc_info:
            command()
        assert exc_info.value.exit_code == ExitCode.NOT_FOUND

    def test_keyboard_interrupt(self) -> None:
        @handle_errors
        def command():
            raise KeyboardInterrupt

        with pytest.raises(typer.Exit) as exc_info:
            command()
        assert exc_info.value.exit_code == ExitCode.CANCELLED

    def test_typer_exit_passes_through(self) -> None:
        @handle_errors
        def command():
            raise typer.Exit(code=3)

        with pytest.raises(typer.Exit) as exc_info:
            command()
        assert exc_info.value.exit_code == 3

    def test_unexpected_error(self) -> None:
        @handle_errors
        def command():
            raise RuntimeError("surprise")

        with pytest.raises(typer.Exit) as exc_info:
            command()
        assert exc_info.value.exit_code == ExitCode.GENERAL_ERROR

    def test_preserves_function_metadata(self) -> None:
        @handle_errors
        def my_command():
            """Docstring."""

        assert my_command.__name__ == "my_command"
        assert my_command.__doc__ == "Docstring."
