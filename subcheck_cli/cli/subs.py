"""Subcheck subs command - Inspect and manage subscription failure streaks."""

from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from subcheck_cli.cli.error_handler import LifecycleCommandError, NotFoundError, handle_errors
from subcheck_cli.config import SubcheckConfig, load_config
from subcheck_cli.lifecycle.exceptions import LifecycleError
from subcheck_cli.lifecycle.failure_ledger import FailureLedger
from subcheck_cli.lifecycle.source_list_editor import SourceListEditor

app = typer.Typer(help="Inspect and manage subscriptions and their failure counts.")
console = Console()


def _config_option() -> Any:
    return typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file.",
        dir_okay=False,
        resolve_path=True,
    )


def _warn_if_daemon_running(config: SubcheckConfig) -> None:
    from subcheck_cli.daemon.pid import PIDFile

    if PIDFile(config.pid_path).is_running():
        console.print(
            "[yellow]Note:[/yellow] the daemon is running and keeps its own copy of "
            "the failure counts; this change may be overwritten after its next round."
        )


@app.command("list")
@handle_errors
def list_subs(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """List subscriptions with their consecutive failure counts.

    Subscriptions that are tracked in the ledger but no longer configured
    are shown too.

    Example:
        subcheck subs list
    """
    config = load_config(config_file)
    ledger = FailureLedger.load(config.ledger_path)
    threshold = config.lifecycle.fail_threshold

    configured = [s for s in config.sub_urls if isinstance(s, str)] if isinstance(config.sub_urls, list) else []
    tracked = [s for s in sorted(ledger.counts()) if s not in configured]

    if not configured and not tracked:
        console.print("[yellow]No subscriptions configured[/yellow]")
        return

    limit = str(threshold) if threshold > 0 else "off"
    table = Table(title=f"Subscriptions (removal threshold: {limit})")
    table.add_column("Subscription", style="cyan")
    table.add_column("Failures", justify="right")
    table.add_column("Status")

    for source_id in configured + tracked:
        count = ledger.fail_count(source_id)
        if source_id not in configured:
            status = "[dim]not configured[/dim]"
        elif count == 0:
            status = "[green]ok[/green]"
        elif threshold > 0 and count >= threshold - 1:
            status = "[red]at risk[/red]"
        else:
            status = "[yellow]failing[/yellow]"
        table.add_row(source_id, str(count), status)

    console.print(table)


@app.command("reset")
@handle_errors
def reset_sub(
    source_id: str = typer.Argument(..., help="Subscription URL to reset."),
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Forget the failure streak of a subscription.

    Example:
        subcheck subs reset https://example.com/sub
    """
    config = load_config(config_file)
    ledger = FailureLedger.load(config.ledger_path)

    if source_id not in ledger:
        raise NotFoundError(f"No failure record for: {source_id}")

    ledger.forget([source_id])
    try:
        ledger.persist(config.ledger_path)
    except LifecycleError as e:
        raise LifecycleCommandError(str(e)) from e

    console.print(f"[green]Reset failure count for {source_id}[/green]")
    _warn_if_daemon_running(config)


@app.command("remove")
@handle_errors
def remove_subs(
    source_ids: List[str] = typer.Argument(..., help="Subscription URLs to remove."),
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Remove subscriptions from the configuration file.

    Their failure records are dropped as well.

    Example:
        subcheck subs remove https://example.com/a https://example.com/b
    """
    config = load_config(config_file)
    if not config.config_path.exists():
        raise NotFoundError(f"Configuration file not found: {config.config_path}")

    try:
        removed = SourceListEditor().remove_sources(config.config_path, source_ids)
    except LifecycleError as e:
        raise LifecycleCommandError(str(e)) from e

    if removed == 0:
        raise NotFoundError("None of the given subscriptions are configured")

    ledger = FailureLedger.load(config.ledger_path)
    if any(s in ledger for s in source_ids):
        ledger.forget(source_ids)
        try:
            ledger.persist(config.ledger_path)
        except LifecycleError as e:
            raise LifecycleCommandError(str(e)) from e

    console.print(f"[green]Removed {removed} subscription(s)[/green]")
