"""Subcheck config command - Configuration inspection."""

from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from subcheck_cli.cli.exit_codes import ExitCode

app = typer.Typer(help="Inspect subcheck configuration.")
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


@app.command("show")
def show_config(
    config_file: Optional[Path] = _config_option(),
    format: str = typer.Option(
        "table",
        "--format",
        "-f",
        help="Output format (table, yaml, json).",
    ),
) -> None:
    """Show the effective configuration, after environment overrides.

    Example:
        subcheck config show
        subcheck config show --format yaml
    """
    from subcheck_cli.config import export_config_json, export_config_yaml, load_config

    config = load_config(config_file)

    if format == "yaml":
        console.print(Syntax(export_config_yaml(config), "yaml", theme="monokai"))
        return
    elif format == "json":
        console.print(Syntax(export_config_json(config), "json", theme="monokai"))
        return
    elif format != "table":
        console.print(f"[red]Unknown format: {format}[/red]")
        raise typer.Exit(code=ExitCode.INVALID_ARGUMENT)

    sections = {
        "schedule": [
            ("check-interval", f"{config.scheduler.check_interval} min"),
            ("cron-expression", config.scheduler.cron_expression or ""),
            ("active mode", str(config.timing_mode())),
        ],
        "lifecycle": [
            ("sub-urls-fail-remove", str(config.lifecycle.fail_threshold)),
            ("eviction", "enabled" if config.lifecycle.fail_threshold > 0 else "disabled"),
        ],
        "probe": [
            ("timeout", f"{config.probe.timeout:g} s"),
            ("sub-urls-retry", str(config.probe.retries)),
        ],
        "paths": [
            ("config", str(config.config_path)),
            ("ledger", str(config.ledger_path)),
            ("data_dir", str(config.data_dir)),
        ],
    }

    console.print("[bold]Subcheck Configuration[/bold]")
    console.print()
    for name, rows in sections.items():
        table = Table(title=name.capitalize())
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="green")
        for key, value in rows:
            table.add_row(key, value)
        console.print(table)
        console.print()

    console.print(f"[bold]sub-urls:[/bold] {len(config.sub_urls)} configured")


@app.command("path")
def config_path(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Show configuration file path.

    Example:
        subcheck config path
    """
    from subcheck_cli.config import load_config

    config = load_config(config_file)
    console.print(f"[bold]Config file:[/bold] {config.config_path}")
    console.print(f"[bold]Exists:[/bold] {config.config_path.exists()}")
    console.print(f"[bold]Ledger:[/bold] {config.ledger_path}")


@app.command("validate")
def validate_config(
    config_file: Optional[Path] = _config_option(),
) -> None:
    """Validate the configuration file.

    Exits with a configuration error code when any check fails.

    Example:
        subcheck config validate
    """
    from subcheck_cli.config import ConfigLoadError, load_config
    from subcheck_cli.config import validate_config as do_validate

    console.print("[bold]Validating configuration...[/bold]")
    console.print()

    try:
        config = load_config(config_file, strict=True)
    except ConfigLoadError as e:
        console.print(f"  [red]✗[/red] {e}")
        console.print()
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)

    all_passed = True
    errors = do_validate(config)
    for error in errors:
        if error.severity == "error":
            status = "[red]✗[/red]"
            all_passed = False
        else:
            status = "[yellow]![/yellow]"
        console.print(f"  {status} [{error.severity.upper()}] {error.field}: {error.message}")

    console.print()
    if all_passed:
        console.print("[green]Configuration is valid[/green]")
    else:
        console.print("[red]Configuration has errors[/red]")
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR)
