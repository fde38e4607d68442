"""Subcheck run command - Start the re-validation daemon and control it."""

import logging
import os
import signal
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console

from subcheck_cli.cli.error_handler import (
    DaemonError,
    LifecycleCommandError,
    SubcheckError,
    handle_errors,
)
from subcheck_cli.cli.exit_codes import ExitCode

app = typer.Typer(help="Start the subscription re-validation daemon.")
console = Console()


def _setup_logging(verbose: bool, log_file: Optional[Path] = None, level_name: str = "INFO") -> None:
    """Set up logging for the daemon process.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Optional log file path
        level_name: Level from the configuration, used when not verbose
    """
    level = logging.DEBUG if verbose else logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        level = logging.INFO
    format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=handlers,
        force=True,
    )


def _config_option() -> Any:
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    )


@app.callback(invoke_without_command=True)
def run(
    ctx: typer.Context,
    config_file: Optional[Path] = _config_option(),
    daemon: bool = typer.Option(
        False,
        "--daemon",
        "-d",
        help="Run in background as daemon.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging.",
    ),
) -> None:
    """Start the subcheck daemon.

    The daemon re-validates every subscription in [cyan]sub-urls[/cyan] on the
    configured interval or cron expression, and removes subscriptions that
    fail [cyan]sub-urls-fail-remove[/cyan] rounds in a row.

    Example:
        subcheck run --config config.yaml
        subcheck run --daemon
    """
    if ctx.invoked_subcommand is not None:
        return

    from subcheck_cli.config import ensure_directories, load_config
    from subcheck_cli.daemon.pid import PIDFile
    from subcheck_cli.daemon.service import daemonize, run_daemon

    config = load_config(config_file)
    ensure_directories(config)

    pid_file = PIDFile(config.pid_path)

    if pid_file.is_running():
        console.print("[red]Error: Daemon is already running[/red]")
        running_pid = pid_file.read()
        if running_pid:
            console.print(f"[yellow]PID: {running_pid}[/yellow]")
        raise typer.Exit(code=ExitCode.DAEMON_ERROR)

    pid_file.clear_if_stale()

    console.print("[bold green]Starting subcheck daemon...[/bold green]")

    if verbose:
        console.print(f"Config: {config.config_path}")
        console.print(f"Schedule: {config.timing_mode()}")
        console.print(f"Daemon mode: {daemon}")
        console.print(f"Data directory: {config.data_dir}")

    log_file = config.logging.file or (config.data_dir / "daemon.log" if daemon else None)
    _setup_logging(verbose, log_file, config.logging.level)

    if daemon:
        if sys.platform == "win32":
            console.print("[yellow]Warning: Daemon mode not supported on Windows, running in foreground[/yellow]")
        else:
            console.print("[dim]Forking to background...[/dim]")
            daemonize(log_file)

    try:
        pid_file.create()
    except OSError as e:
        console.print(f"[red]Error: Failed to create PID file: {e}[/red]")
        raise typer.Exit(code=ExitCode.DAEMON_ERROR)

    import atexit
    atexit.register(pid_file.remove)

    try:
        run_daemon(config)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
    except Exception as e:
        logging.exception("Daemon error")
        console.print(f"[red]Daemon error: {e}[/red]")
        raise typer.Exit(code=ExitCode.DAEMON_ERROR)


@app.command()
@handle_errors
def once(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Run a single validation round in the foreground.

    Outcomes update the failure ledger and may evict subscriptions, exactly
    as a scheduled round in the daemon would.

    Example:
        subcheck run once
    """
    from subcheck_cli.config import load_config
    from subcheck_cli.daemon.service import SubcheckDaemon
    from subcheck_cli.lifecycle.exceptions import LifecycleError
    from subcheck_cli.validation.probe import ValidationRoundError

    config = load_config(config_file)
    service = SubcheckDaemon(config, watch_config=False)
    try:
        result, report = service.run_once()
    except ValidationRoundError as e:
        raise SubcheckError(str(e), exit_code=ExitCode.VALIDATION_ERROR) from e
    except LifecycleError as e:
        raise LifecycleCommandError(str(e)) from e

    console.print(
        f"[green]Round finished:[/green] {len(result.success_ids)} ok, "
        f"{len(result.failure_ids)} failed"
    )
    for outcome in result:
        if outcome.failed:
            console.print(f"  [red]✗[/red] {outcome.source_id} [dim]({outcome.detail})[/dim]")
    for source_id in report.evicted:
        console.print(f"[yellow]Removed:[/yellow] {source_id}")


def _running_pid(config_file: Optional[Path]) -> int:
    from subcheck_cli.config import load_config
    from subcheck_cli.daemon.pid import PIDFile

    config = load_config(config_file)
    pid_file = PIDFile(config.pid_path)

    pid = pid_file.read()
    if pid is None:
        raise DaemonError("Daemon is not running (no PID file found)")
    if not pid_file.is_running():
        pid_file.remove()
        raise DaemonError("Daemon is not running (stale PID file)")
    return pid


@app.command()
def status(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Check daemon status.

    Example:
        subcheck run status
    """
    from subcheck_cli.config import load_config
    from subcheck_cli.daemon.pid import PIDFile

    config = load_config(config_file)
    pid_file = PIDFile(config.pid_path)

    if pid_file.is_running():
        pid = pid_file.read()
        console.print(f"[green]● Daemon is running[/green] (PID: {pid})")
        console.print(f"  Config: {config.config_path}")
        console.print(f"  Schedule: {config.timing_mode()}")
        console.print(f"  Ledger: {config.ledger_path}")
    else:
        console.print("[yellow]○ Daemon is not running[/yellow]")
        if pid_file.clear_if_stale():
            console.print("[dim]  (removed stale PID file)[/dim]")


@app.command()
def stop(
    config_file: Optional[Path] = _config_option(),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Force kill the daemon (SIGKILL).",
    ),
) -> None:
    """Stop the daemon.

    Sends SIGTERM for a graceful shutdown, or SIGKILL with --force.

    Example:
        subcheck run stop
        subcheck run stop --force
    """
    from subcheck_cli.config import load_config
    from subcheck_cli.daemon.pid import PIDFile

    config = load_config(config_file)
    pid_file = PIDFile(config.pid_path)

    pid = pid_file.read()

    if pid is None:
        console.print("[yellow]Daemon is not running (no PID file found)[/yellow]")
        raise typer.Exit()

    if not pid_file.is_running():
        console.print("[yellow]Daemon is not running (stale PID file)[/yellow]")
        pid_file.remove()
        raise typer.Exit()

    sig = signal.SIGKILL if force else signal.SIGTERM

    try:
        os.kill(pid, sig)
        if force:
            console.print(f"[red]Force killed daemon (PID: {pid})[/red]")
            pid_file.remove()
        else:
            console.print(f"[green]Shutdown signal sent to daemon (PID: {pid})[/green]")
    except ProcessLookupError:
        console.print("[yellow]Daemon process not found (already stopped)[/yellow]")
        pid_file.remove()
    except OSError as e:
        console.print(f"[red]Error signaling daemon: {e}[/red]")
        raise typer.Exit(code=ExitCode.DAEMON_ERROR)


@app.command()
@handle_errors
def trigger(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Ask the running daemon for an extra validation round.

    The request is dropped by the daemon if one is already pending.

    Example:
        subcheck run trigger
    """
    if not hasattr(signal, "SIGUSR1"):
        raise DaemonError("Manual triggers are not supported on this platform")

    pid = _running_pid(config_file)
    try:
        os.kill(pid, signal.SIGUSR1)
    except OSError as e:
        raise DaemonError(f"Error signaling daemon: {e}") from e
    console.print(f"[green]Validation round requested[/green] (PID: {pid})")
