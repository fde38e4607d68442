"""Main daemon service for subcheck.

This module provides the core daemon functionality including:
- Service lifecycle management (start/stop)
- Configuration reload on file change
- Signal handling for shutdown and manual rounds
- Background daemon mode with process forking
"""

import logging
import os
import signal
import sys
import threading
from pathlib import Path
from typing import Callable, Optional, Tuple

from subcheck_cli.config import ConfigLoadError, SubcheckConfig, load_config
from subcheck_cli.daemon.watcher import ConfigWatcher
from subcheck_cli.lifecycle.manager import LifecycleManager, LifecycleReport
from subcheck_cli.scheduler.round_scheduler import RoundScheduler
from subcheck_cli.validation.probe import SubscriptionProbe
from subcheck_cli.validation.results import RoundResult

logger = logging.getLogger(__name__)

# How often the main thread wakes up to let signal handlers run
_SHUTDOWN_POLL_SECONDS = 1.0


class SubcheckDaemon:
    """Main daemon service for subcheck.

    The daemon wires the subscription probe, the lifecycle manager and the
    round scheduler together, and watches the configuration file so that
    timing and eviction settings follow edits without a restart.

    Attributes:
        _config: Current configuration, replaced on each successful reload
        _probe: Default validation routine (None when one was injected)
        _lifecycle: Lifecycle manager instance
        _scheduler: Round scheduler instance
        _watcher: Configuration file watcher
        _running: Whether the daemon is running
        _shutdown_event: Event to signal shutdown

    Example:
        daemon = SubcheckDaemon(config)

        daemon.start()
        daemon.run_until_shutdown()
        daemon.stop()
    """

    def __init__(
        self,
        config: SubcheckConfig,
        run_validation: Optional[Callable[[], RoundResult]] = None,
        watch_config: bool = True,
        on_fatal: Optional[Callable[[BaseException], object]] = None,
    ):
        """Initialize the daemon service.

        Args:
            config: Loaded configuration
            run_validation: Validation routine; defaults to a SubscriptionProbe
                built from the configuration
            watch_config: Reload the configuration when its file changes
            on_fatal: Override for the scheduler's fatal-round handler
        """
        self._config = config
        self._run_validation = run_validation
        self._watch_config = watch_config
        self._on_fatal = on_fatal

        self._probe: Optional[SubscriptionProbe] = None
        self._lifecycle: Optional[LifecycleManager] = None
        self._scheduler: Optional[RoundScheduler] = None
        self._watcher: Optional[ConfigWatcher] = None
        self._running = False
        self._shutdown_event = threading.Event()

    def start(self) -> None:
        """Start the daemon services.

        This initializes and starts all daemon components:
        1. Lifecycle manager with the configured eviction threshold
        2. Round scheduler in the configured timing mode
        3. Configuration watcher
        """
        logger.info("Starting subcheck daemon...")

        self._lifecycle = self._setup()
        if self._lifecycle.enabled:
            logger.info(
                f"Subscriptions are removed after "
                f"{self._config.lifecycle.fail_threshold} consecutive failed rounds"
            )

        scheduler_kwargs = {}
        if self._on_fatal is not None:
            scheduler_kwargs["on_fatal"] = self._on_fatal
        self._scheduler = RoundScheduler(
            run_validation=self._validate,
            lifecycle=self._lifecycle,
            mode=self._config.timing_mode(),
            **scheduler_kwargs,
        )
        self._scheduler.start()

        if self._watch_config and self._config.config_path.parent.is_dir():
            self._watcher = ConfigWatcher(self._config.config_path, on_change=self.reload)
            self._watcher.start()

        self._running = True
        logger.info("Subcheck daemon started successfully")

    def stop(self) -> None:
        """Stop the daemon services in reverse order of startup."""
        logger.info("Stopping subcheck daemon...")

        self._running = False

        if self._watcher:
            try:
                self._watcher.stop()
            except Exception as e:
                logger.warning(f"Error stopping configuration watcher: {e}")
            self._watcher = None

        if self._scheduler:
            try:
                self._scheduler.stop()
            except Exception as e:
                logger.warning(f"Error stopping scheduler: {e}")

        logger.info("Subcheck daemon stopped")

    def reload(self) -> None:
        """Re-read the configuration file and apply it.

        The eviction threshold is updated and the scheduler is reconfigured
        with the new timing mode. A file that cannot be read leaves the
        running configuration untouched.
        """
        try:
            config = load_config(self._config.config_path, strict=True)
        except ConfigLoadError as e:
            logger.error(f"Ignoring configuration change: {e}")
            return

        logger.info("Reloading configuration")
        self._config = config

        if self._probe is not None:
            self._probe = _build_probe(config)
        if self._lifecycle is not None:
            self._lifecycle.threshold = config.lifecycle.fail_threshold
        if self._scheduler is not None:
            self._scheduler.reconfigure(config.timing_mode())

    def run_once(self) -> Tuple[RoundResult, LifecycleReport]:
        """Run one validation round synchronously, outside the scheduler.

        Unlike scheduled rounds, errors propagate to the caller instead of
        terminating the process.

        Returns:
            The round's outcomes and what the lifecycle manager did with them
        """
        if self._lifecycle is None:
            self._lifecycle = self._setup()
        result = self._validate()
        report = self._lifecycle.process(result)
        return result, report

    def trigger_manual(self) -> bool:
        """Ask the scheduler for an extra validation round."""
        if self._scheduler is None:
            logger.warning("Daemon not started, ignoring manual trigger")
            return False
        return self._scheduler.trigger_manual()

    def run_until_shutdown(self) -> None:
        """Block until request_shutdown() is called.

        The wait wakes up periodically so signal handlers get a chance to
        run on the main thread.
        """
        while not self._shutdown_event.wait(_SHUTDOWN_POLL_SECONDS):
            pass

    def request_shutdown(self) -> None:
        """Request daemon shutdown."""
        logger.info("Shutdown requested")
        self._shutdown_event.set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def config(self) -> SubcheckConfig:
        return self._config

    @property
    def lifecycle(self) -> Optional[LifecycleManager]:
        return self._lifecycle

    @property
    def scheduler(self) -> Optional[RoundScheduler]:
        return self._scheduler

    def _setup(self) -> LifecycleManager:
        if self._run_validation is None:
            self._probe = _build_probe(self._config)
        return LifecycleManager(
            config_path=self._config.config_path,
            ledger_path=self._config.ledger_path,
            threshold=self._config.lifecycle.fail_threshold,
        )

    def _validate(self) -> RoundResult:
        if self._run_validation is not None:
            return self._run_validation()
        if self._probe is None:
            self._probe = _build_probe(self._config)
        return self._probe.run_round()


def _build_probe(config: SubcheckConfig) -> SubscriptionProbe:
    return SubscriptionProbe(
        config.config_path,
        timeout=config.probe.timeout,
        retries=config.probe.retries,
        user_agent=config.probe.user_agent,
    )


def run_daemon(config: SubcheckConfig) -> None:
    """Run the subcheck daemon with signal handling.

    SIGTERM and SIGINT shut the daemon down; SIGUSR1 requests a manual
    validation round.

    Args:
        config: Loaded configuration
    """
    daemon = SubcheckDaemon(config)

    def handle_shutdown(signum: int, frame: object) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}, initiating shutdown...")
        daemon.request_shutdown()

    def handle_trigger(signum: int, frame: object) -> None:
        logger.info(f"Received signal {signal.Signals(signum).name}")
        daemon.trigger_manual()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, handle_shutdown)
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, handle_trigger)

    daemon.start()
    try:
        daemon.run_until_shutdown()
    finally:
        daemon.stop()


def daemonize(log_file: Optional[Path] = None) -> None:
    """Fork process to run as daemon.

    Forks twice and redirects the standard file descriptors.

    Args:
        log_file: Path to log file for stdout/stderr redirection.
                 If None, output is redirected to /dev/null.

    Note:
        Only works on Unix-like systems. On Windows it returns without
        doing anything.
    """
    if sys.platform == "win32":
        logger.warning("Daemon mode not supported on Windows")
        return

    pid = os.fork()
    if pid > 0:
        sys.exit(0)

    os.setsid()

    pid = os.fork()
    if pid > 0:
        sys.exit(0)

    sys.stdout.flush()
    sys.stderr.flush()

    with open(os.devnull, "r") as devnull:
        os.dup2(devnull.fileno(), sys.stdin.fileno())

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(log_file, "a+") as f:
            os.dup2(f.fileno(), sys.stdout.fileno())
            os.dup2(f.fileno(), sys.stderr.fileno())
    else:
        with open(os.devnull, "a+") as devnull:
            os.dup2(devnull.fileno(), sys.stdout.fileno())
            os.dup2(devnull.fileno(), sys.stderr.fileno())

    logger.info(f"Daemon process started (PID: {os.getpid()})")
