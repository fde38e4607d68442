"""CLI command modules for subcheck.

Command modules import the daemon and scheduler lazily, inside the
command functions, so importing this package stays cheap.
"""

from subcheck_cli.cli import config, run, subs
from subcheck_cli.cli.exit_codes import ExitCode
from subcheck_cli.cli.error_handler import (
    ConfigurationError,
    DaemonError,
    LifecycleCommandError,
    NotFoundError,
    SubcheckError,
    handle_errors,
)

__all__ = [
    # Command modules
    "config",
    "run",
    "subs",
    # Exit codes
    "ExitCode",
    # Error handling
    "SubcheckError",
    "ConfigurationError",
    "DaemonError",
    "LifecycleCommandError",
    "NotFoundError",
    "handle_errors",
]
