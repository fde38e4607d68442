"""Round scheduler for periodic subscription validation.

The RoundScheduler decides when a validation round runs and guarantees
that at most one round runs at any instant. Rounds fire either on a
fixed interval or on a cron expression (both via APScheduler), and can be
requested manually through a single-slot mailbox.

After each successful round the outcomes are handed to the lifecycle
manager and the next scheduled fire time is logged. A round that raises
is treated as unrecoverable and terminates the process.
"""

import gc
import logging
import os
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.interval import IntervalTrigger

from subcheck_cli.cli.exit_codes import ExitCode
from subcheck_cli.lifecycle.exceptions import LifecycleError
from subcheck_cli.lifecycle.manager import LifecycleManager
from subcheck_cli.scheduler.mailbox import TriggerMailbox
from subcheck_cli.scheduler.timing import CronMode, IntervalMode, TimingMode, parse_cron_trigger
from subcheck_cli.validation.results import RoundResult

logger = logging.getLogger(__name__)

ROUND_JOB_ID = "validation-round"

# Used when an interval of zero or less is configured
DEFAULT_INTERVAL_MINUTES = 720

# How often the dispatcher re-checks for shutdown while idle
_DISPATCH_POLL_SECONDS = 0.5

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def exit_process(error: BaseException) -> None:
    """Terminate the process after an unrecoverable validation round.

    Rounds run on worker threads, where ``sys.exit`` would only end the
    thread, so logging is flushed and the process exits directly.
    """
    logger.critical(f"Validation round failed unrecoverably, exiting: {error}")
    logging.shutdown()
    os._exit(ExitCode.VALIDATION_ERROR)


class RoundScheduler:
    """Schedules validation rounds with single-flight execution.

    The scheduler owns all mutable timing state: the APScheduler instance
    of the current timing generation, the single-flight guard and the
    manual-trigger mailbox. Callers only use start(), reconfigure(),
    trigger_manual() and stop().

    Every timing generation gets its own BackgroundScheduler. Shutting
    that instance down cancels the generation; it is never restarted.

    reconfigure() must not be called concurrently with itself. The daemon
    calls it from a single config-watcher thread; other callers that may
    race need their own mutual exclusion.

    Example:
        scheduler = RoundScheduler(
            run_validation=probe.run_round,
            lifecycle=manager,
            mode=IntervalMode(minutes=30),
        )
        scheduler.start()

        # Later, after the configuration file changed
        scheduler.reconfigure(CronMode("0 */6 * * *"))

        # Ask for an extra round now
        scheduler.trigger_manual()

    Attributes:
        _run_validation: Runs one round and returns its outcomes
        _lifecycle: Receives each round's outcomes (optional)
        _mode: Requested timing mode
        _active_mode: Mode actually installed (after any cron fallback)
        _interval_minutes: Configured interval, used for cron fallback
        _round_guard: Held while a round is running
        _mailbox: Pending manual trigger, at most one
        _schedule: APScheduler instance of the current generation
    """

    def __init__(
        self,
        run_validation: Callable[[], RoundResult],
        lifecycle: Optional[LifecycleManager] = None,
        mode: TimingMode = IntervalMode(720),
        on_fatal: Callable[[BaseException], Any] = exit_process,
        reclaim: Callable[[], Any] = gc.collect,
    ) -> None:
        """Initialize the scheduler.

        Args:
            run_validation: Callable running one validation round
            lifecycle: Lifecycle manager fed with each round's outcomes
            mode: Timing mode installed by start()
            on_fatal: Called with the exception when a round raises
            reclaim: Memory reclaim hint run after each successful round
        """
        self._run_validation = run_validation
        self._lifecycle = lifecycle
        self._on_fatal = on_fatal
        self._reclaim = reclaim

        self._mode: TimingMode = mode
        self._active_mode: Optional[TimingMode] = None
        self._interval_minutes: float = _interval_of(mode)

        self._round_guard = threading.Lock()
        self._mailbox = TriggerMailbox()

        self._schedule: Optional[BackgroundScheduler] = None

        self._started = False
        self._stopping = threading.Event()
        self._dispatcher: Optional[threading.Thread] = None
        self._rounds_completed = 0

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_round_running(self) -> bool:
        return self._round_guard.locked()

    @property
    def mode(self) -> TimingMode:
        """Requested timing mode."""
        return self._mode

    @property
    def active_mode(self) -> Optional[TimingMode]:
        """Installed timing mode, None while stopped."""
        return self._active_mode

    @property
    def rounds_completed(self) -> int:
        return self._rounds_completed

    @property
    def next_fire_time(self) -> Optional[datetime]:
        """When the next scheduled round fires, None while stopped."""
        # Read once, reconfigure() may swap the generation at any time
        schedule = self._schedule
        if schedule is None:
            return None
        job = schedule.get_job(ROUND_JOB_ID)
        if job is None:
            return None
        return job.next_run_time

    def start(self) -> None:
        """Start firing rounds in the configured mode.

        In interval mode the first round fires immediately. In cron mode
        nothing fires until the expression next matches.
        """
        if self._started:
            logger.warning("Round scheduler already running")
            return

        self._stopping.clear()
        self._dispatcher = threading.Thread(
            target=self._dispatch_loop,
            name="subcheck-manual-trigger",
            daemon=True,
        )
        self._dispatcher.start()

        if isinstance(self._mode, CronMode):
            logger.warning("Using a cron expression, the first round waits for its next match")
        self._install(self._mode, fire_now=isinstance(self._mode, IntervalMode))
        self._started = True

    def reconfigure(self, mode: TimingMode) -> None:
        """Switch to a new timing mode.

        The previous generation is torn down completely before the new one
        is installed. A cron expression that fails to parse is logged and
        replaced by the interval configured alongside it. Reconfiguring
        never fires a round immediately.

        Not safe to call concurrently with itself.

        Args:
            mode: The new timing mode
        """
        previous = self._active_mode
        self._mode = mode
        self._interval_minutes = _interval_of(mode)

        if not self._started:
            logger.debug(f"Scheduler not started, {mode} will apply on start")
            return

        logger.info(f"Switching round schedule: {previous} -> {mode}")
        self._teardown()
        self._install(mode, fire_now=False)

    def trigger_manual(self) -> bool:
        """Request an extra round without blocking.

        If a manual round is already pending the request is dropped.

        Returns:
            True if the request was accepted
        """
        if self._mailbox.try_post():
            logger.info("Manual validation round requested")
            return True
        logger.warning("A validation round is already pending, ignoring manual trigger")
        return False

    def stop(self, wait: bool = False) -> None:
        """Stop firing rounds.

        Args:
            wait: Wait for the manual-trigger dispatcher to exit
        """
        if not self._started:
            return

        logger.info("Stopping round scheduler...")
        self._stopping.set()
        self._teardown()

        if wait and self._dispatcher is not None and self._dispatcher is not threading.current_thread():
            self._dispatcher.join()
        self._dispatcher = None

        self._started = False
        logger.info("Round scheduler stopped")

    def _install(self, mode: TimingMode, fire_now: bool) -> None:
        """Install ``mode``, falling back to the interval on a bad cron expression."""
        if isinstance(mode, CronMode):
            try:
                trigger = parse_cron_trigger(mode.expression)
            except ValueError as e:
                logger.error(
                    f"Cron expression '{mode.expression}' failed to parse: {e}, "
                    f"using check interval of {self._interval_minutes:g} minutes"
                )
                mode = IntervalMode(self._interval_minutes)
            else:
                self._start_schedule(mode, trigger)
                logger.info(f"Using cron expression '{mode.expression}'{self._next_fire_suffix()}")
                return

        if mode.minutes <= 0:
            logger.error(
                f"Check interval must be positive, got {mode.minutes:g}, "
                f"using {DEFAULT_INTERVAL_MINUTES} minutes"
            )
            mode = IntervalMode(DEFAULT_INTERVAL_MINUTES)
        self._interval_minutes = mode.minutes
        self._start_schedule(
            mode,
            IntervalTrigger(seconds=mode.seconds),
            first_run=datetime.now() if fire_now else None,
        )
        logger.info(f"Using check interval of {mode.minutes:g} minutes")

    def _start_schedule(
        self,
        mode: TimingMode,
        trigger: BaseTrigger,
        first_run: Optional[datetime] = None,
    ) -> None:
        scheduler = BackgroundScheduler(
            job_defaults={
                "coalesce": True,  # Combine missed runs
                "max_instances": 1,  # One instance per job
                "misfire_grace_time": 60 * 5,  # 5 minutes grace
            },
        )
        job_kwargs: dict[str, Any] = {}
        if first_run is not None:
            job_kwargs["next_run_time"] = first_run
        scheduler.add_job(
            self._run_round,
            trigger=trigger,
            id=ROUND_JOB_ID,
            name="Validation round",
            replace_existing=True,
            **job_kwargs,
        )
        scheduler.start()

        self._schedule = scheduler
        self._active_mode = mode

    def _teardown(self) -> None:
        """Shut down the current generation's scheduler."""
        schedule = self._schedule
        self._schedule = None
        self._active_mode = None
        if schedule is not None:
            schedule.shutdown(wait=False)
            logger.debug("Round schedule stopped")

    def _dispatch_loop(self) -> None:
        """Run a round for each manual trigger taken from the mailbox."""
        while not self._stopping.is_set():
            if self._mailbox.take(timeout=_DISPATCH_POLL_SECONDS):
                if self._stopping.is_set():
                    return
                try:
                    self._run_round()
                except Exception:
                    logger.exception("Unexpected error after manual validation round")

    def _run_round(self) -> None:
        """Run one validation round unless one is already running."""
        if not self._round_guard.acquire(blocking=False):
            logger.warning("A validation round is already running, skipping this one")
            return

        released = False
        try:
            logger.info("Starting validation round")
            try:
                result = self._run_validation()
            except Exception as e:
                logger.error(f"Validation round failed: {e}", exc_info=True)
                self._round_guard.release()
                released = True
                self._on_fatal(e)
                return

            self._reclaim()
            self._round_guard.release()
            released = True
            self._rounds_completed += 1
            logger.info(f"Validation round finished with {len(result)} source outcome(s)")

            if self._lifecycle is not None:
                try:
                    self._lifecycle.process(result)
                except LifecycleError as e:
                    logger.error(f"Failed to process subscription lifecycle: {e}")

            self._restart_countdown()
            next_at = self.next_fire_time
            if next_at is not None:
                logger.info(f"Next validation round at {next_at.strftime(_TIME_FORMAT)}")
        finally:
            if not released:
                self._round_guard.release()

    def _restart_countdown(self) -> None:
        """In interval mode, count the next interval from the end of this round."""
        schedule = self._schedule
        mode = self._active_mode
        if schedule is None or not isinstance(mode, IntervalMode):
            return
        try:
            schedule.modify_job(ROUND_JOB_ID, next_run_time=datetime.now() + mode.interval)
        except JobLookupError:
            logger.debug("Round schedule replaced while a round was finishing")

    def _next_fire_suffix(self) -> str:
        next_at = self.next_fire_time
        if next_at is None:
            return ""
        return f", next round at {next_at.strftime(_TIME_FORMAT)}"


def _interval_of(mode: TimingMode) -> float:
    if isinstance(mode, IntervalMode):
        return mode.minutes
    return mode.fallback_minutes
