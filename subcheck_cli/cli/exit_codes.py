"""Standard exit codes for Subcheck.

This module defines standard exit codes used across Subcheck
for consistent error reporting and scripting support.
"""


class ExitCode:
    """Standard exit codes for Subcheck.

    These codes follow common Unix conventions where possible:
    - 0: Success
    - 1: General error
    - 128+N: Fatal error signal N
    - 130: Script terminated by Ctrl+C (SIGINT)

    Subcheck-specific codes start at 2:
    - 2: Configuration error
    - 3: Validation round failed unrecoverably
    - 4: Subscription lifecycle error
    - 5: Daemon control error
    - 6: Invalid argument
    - 7: Not found
    """

    # Standard success
    SUCCESS = 0

    # General errors
    GENERAL_ERROR = 1

    # Subcheck-specific errors (2-7)
    CONFIGURATION_ERROR = 2
    VALIDATION_ERROR = 3
    LIFECYCLE_ERROR = 4
    DAEMON_ERROR = 5
    INVALID_ARGUMENT = 6
    NOT_FOUND = 7

    # Signal-based exits (128 + signal number)
    CANCELLED = 130  # Ctrl+C (SIGINT = 2)

    @classmethod
    def get_name(cls, code: int) -> str:
        """Get the name of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable name for the exit code
        """
        names = {
            cls.SUCCESS: "SUCCESS",
            cls.GENERAL_ERROR: "GENERAL_ERROR",
            cls.CONFIGURATION_ERROR: "CONFIGURATION_ERROR",
            cls.VALIDATION_ERROR: "VALIDATION_ERROR",
            cls.LIFECYCLE_ERROR: "LIFECYCLE_ERROR",
            cls.DAEMON_ERROR: "DAEMON_ERROR",
            cls.INVALID_ARGUMENT: "INVALID_ARGUMENT",
            cls.NOT_FOUND: "NOT_FOUND",
            cls.CANCELLED: "CANCELLED",
        }
        return names.get(code, f"UNKNOWN({code})")

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get the description of an exit code.

        Args:
            code: The exit code value

        Returns:
            Human-readable description for the exit code
        """
        descriptions = {
            cls.SUCCESS: "Operation completed successfully",
            cls.GENERAL_ERROR: "An unexpected error occurred",
            cls.CONFIGURATION_ERROR: "Configuration error or invalid config file",
            cls.VALIDATION_ERROR: "A validation round failed unrecoverably",
            cls.LIFECYCLE_ERROR: "Subscription state or source list error",
            cls.DAEMON_ERROR: "Daemon is not running or cannot be signalled",
            cls.INVALID_ARGUMENT: "Invalid command-line argument",
            cls.NOT_FOUND: "Requested resource not found",
            cls.CANCELLED: "Operation cancelled by user",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
