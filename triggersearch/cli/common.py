"""Helpers shared by the triggersearch CLI commands."""

from typing import NoReturn
from urllib.parse import urlsplit, urlunsplit

import typer
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from triggersearch.config import TriggerSearchConfig, load_config
from triggersearch.db import normalize_url
from triggersearch.events import EventModelInfo, build_event_models
from triggersearch.exceptions import ConfigurationError
from triggersearch.triggers import TriggerSQLSource, resolve_trigger_source


def fail(message: str) -> NoReturn:
    """Print an error and exit with the configuration error code."""
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(2)


def load_cli_config(config: str | None) -> TriggerSearchConfig:
    try:
        return load_config(config or None)
    except ConfigurationError as e:
        fail(str(e))


def load_infos(cfg: TriggerSearchConfig) -> list[EventModelInfo]:
    try:
        return build_event_models(cfg.watched())
    except ConfigurationError as e:
        fail(str(e))


def dialect_from_url(url: str | None) -> str | None:
    if not url or not url.strip():
        return None
    try:
        return make_url(normalize_url(url)).get_backend_name()
    except (ConfigurationError, ArgumentError):
        return None


def cli_trigger_source(cfg: TriggerSearchConfig) -> TriggerSQLSource:
    """Trigger source from config, falling back to the database URL's dialect."""
    reference = cfg.trigger_source or dialect_from_url(cfg.database_url)
    if reference is None:
        fail("Set trigger_source or database_url to choose the SQL dialect.")
    try:
        return resolve_trigger_source(reference)
    except ConfigurationError as e:
        fail(str(e))


def mask_url(url: str) -> str:
    """Hide password in URL."""
    if "://" not in url:
        return url
    split = urlsplit(url)
    if split.username is None:
        return url
    userinfo = split.username
    if split.password is not None:
        userinfo = f"{userinfo}:***"
    host = split.hostname or ""
    try:
        parsed_port = split.port
    except ValueError:
        return url
    port_suffix = f":{parsed_port}" if parsed_port is not None else ""
    netloc = f"{userinfo}@{host}{port_suffix}"
    return urlunsplit((split.scheme, netloc, split.path, split.query, split.fragment))
