"""Daemon service for subcheck.

Runs the round scheduler in the foreground or as a forked background
process, reloads the configuration when its file changes, and tracks
the running process through a PID file.
"""

from subcheck_cli.daemon.pid import PIDFile
from subcheck_cli.daemon.service import SubcheckDaemon, daemonize, run_daemon
from subcheck_cli.daemon.watcher import ConfigWatcher

__all__ = [
    "ConfigWatcher",
    "PIDFile",
    "SubcheckDaemon",
    "daemonize",
    "run_daemon",
]
