"""CLI tools: triggersearch sql, triggersearch setup, triggersearch status."""

import logging
import sys
from importlib import metadata

import typer

from triggersearch.cli.setup import setup_command
from triggersearch.cli.sql import sql_command
from triggersearch.cli.status import status_command

app = typer.Typer(
    name="triggersearch",
    help="Trigger-based search index synchronization.",
    no_args_is_help=True,
)

app.command("sql")(sql_command)
app.command("setup")(setup_command)
app.command("status")(status_command)


def _print_version_and_exit() -> None:
    """Print installed package version and exit."""
    try:
        version = metadata.version("triggersearch")
    except metadata.PackageNotFoundError:
        version = "unknown"
    print(f"triggersearch {version}")
    raise SystemExit(0)


def main() -> None:
    """CLI entry point."""
    if "--version" in sys.argv or "-V" in sys.argv:
        _print_version_and_exit()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
