"""PID file management for daemon process tracking."""

import os
from pathlib import Path
from typing import Optional


class PIDFile:
    """Manage the daemon PID file.

    The PID file lets ``subcheck run status|stop|trigger`` find and
    signal the running daemon.

    Example:
        pid_file = PIDFile(Path("~/.local/share/subcheck/subcheck.pid"))

        if pid_file.is_running():
            print("Daemon already running")
        else:
            pid_file.create()
            try:
                ...
            finally:
                pid_file.remove()
    """

    def __init__(self, path: Path):
        self.path = path

    def create(self) -> None:
        """Write the current process ID, creating the parent directory."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(str(os.getpid()))

    def remove(self) -> None:
        """Remove the PID file if it exists."""
        if self.path.exists():
            self.path.unlink()

    def read(self) -> Optional[int]:
        """Read the PID from the file.

        Returns:
            The PID, or None if the file is missing or does not hold a number
        """
        if not self.path.exists():
            return None

        try:
            return int(self.path.read_text().strip())
        except (ValueError, OSError):
            return None

    def is_running(self) -> bool:
        """Check whether the recorded process is alive.

        A stale file (process gone) counts as not running.
        """
        pid = self.read()
        if pid is None:
            return False

        try:
            # Signal 0 only checks that the process exists
            os.kill(pid, 0)
            return True
        except (OSError, ProcessLookupError):
            return False

    def clear_if_stale(self) -> bool:
        """Remove the PID file if its process is gone.

        Returns:
            True if the file was stale and has been removed
        """
        if self.read() is None or self.is_running():
            return False
        self.remove()
        return True
