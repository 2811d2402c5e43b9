"""triggersearch sql: print the capture-table and trigger DDL without running it."""

import typer

from triggersearch.cli.common import cli_trigger_source, load_cli_config, load_infos
from triggersearch.triggers import TriggerCreationStrategy, plan_statements


def sql_command(
    config: str = typer.Option("", "--config", help="Path to triggersearch.yaml."),
    drop: bool = typer.Option(False, "--drop", help="Include drop statements before the creates."),
) -> None:
    """Print the SQL the setup step would run, one statement per line."""
    cfg = load_cli_config(config)
    infos = load_infos(cfg)
    source = cli_trigger_source(cfg)
    strategy = TriggerCreationStrategy.DROP_CREATE if drop else TriggerCreationStrategy.CREATE
    for statement in plan_statements(source, infos, strategy):
        typer.echo(f"{statement.sql};")
