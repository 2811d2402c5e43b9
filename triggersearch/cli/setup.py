"""triggersearch setup: create capture tables and triggers in the database."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from triggersearch.cli.common import cli_trigger_source, fail, load_cli_config, load_infos
from triggersearch.db import create_engine
from triggersearch.events import EventModelInfo
from triggersearch.exceptions import ConfigurationError
from triggersearch.triggers import (
    TriggerCreationStrategy,
    TriggerSetupReport,
    TriggerSQLSource,
    apply_trigger_strategy,
)


async def _run_setup(
    url: str | None,
    source: TriggerSQLSource,
    infos: list[EventModelInfo],
    strategy: TriggerCreationStrategy,
) -> TriggerSetupReport:
    engine = create_engine(url)
    try:
        return await apply_trigger_strategy(engine, source, infos, strategy)
    finally:
        await engine.dispose()


def _print_report(report: TriggerSetupReport, strategy: TriggerCreationStrategy) -> None:
    console = Console()
    table = Table(title="Trigger setup", show_header=True, header_style="bold")
    table.add_column("Item", style="dim")
    table.add_column("Value")
    table.add_row("Strategy", strategy.value)
    table.add_row("Executed", str(report.executed))
    table.add_row("Failed", str(len(report.failed)))
    console.print(table)
    for sql in report.failed:
        console.print(f"[yellow]failed:[/yellow] {sql}")


def setup_command(
    config: str = typer.Option("", "--config", help="Path to triggersearch.yaml."),
    strategy: str = typer.Option(
        "",
        "--strategy",
        help="create, drop-create or dont-create (default: trigger_creation_strategy from config).",
    ),
) -> None:
    """Create capture tables and triggers for every watched entity."""
    cfg = load_cli_config(config)
    try:
        chosen = TriggerCreationStrategy(strategy or cfg.trigger_creation_strategy)
    except ValueError:
        fail(f"Unknown trigger creation strategy {strategy!r}")
    infos = load_infos(cfg)
    source = cli_trigger_source(cfg)
    try:
        report = asyncio.run(_run_setup(cfg.database_url, source, infos, chosen))
    except ConfigurationError as e:
        fail(str(e))
    _print_report(report, chosen)
