"""triggersearch status: show pending capture rows per capture table."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from triggersearch.cli.common import fail, load_cli_config, load_infos, mask_url
from triggersearch.db import create_engine, resolve_url
from triggersearch.events import EventModelInfo, count_pending
from triggersearch.exceptions import ConfigurationError


async def _collect_pending(url: str, infos: list[EventModelInfo]) -> dict[str, int]:
    engine = create_engine(url)
    try:
        return await count_pending(engine, infos)
    finally:
        await engine.dispose()


def _print_status_table(name: str, url: str, infos: list[EventModelInfo], pending: dict[str, int]) -> None:
    console = Console()
    table = Table(title=f"triggersearch status ({name})", show_header=True, header_style="bold")
    table.add_column("Capture table")
    table.add_column("Source table", style="dim")
    table.add_column("Entity", style="dim")
    table.add_column("Pending", justify="right")
    for info in infos:
        table.add_row(
            info.capture_table,
            info.source_table,
            info.entity_name,
            f"{pending.get(info.capture_table, 0):,}",
        )
    console.print(f"Connection: {mask_url(url)}")
    console.print(table)


def status_command(
    config: str = typer.Option("", "--config", help="Path to triggersearch.yaml."),
) -> None:
    """Show how many capture rows wait in each capture table."""
    cfg = load_cli_config(config)
    infos = load_infos(cfg)
    try:
        url = resolve_url(cfg.database_url)
        pending = asyncio.run(_collect_pending(url, infos))
    except ConfigurationError as e:
        fail(str(e))
    _print_status_table(cfg.name, url, infos, pending)
