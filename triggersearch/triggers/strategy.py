"""Apply capture tables and triggers according to a creation strategy."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncEngine

from triggersearch.events.model import EventModelInfo
from triggersearch.events.types import EventType
from triggersearch.exceptions import ConfigurationError
from triggersearch.triggers.base import TriggerSQLSource
from triggersearch.triggers.dialects import (
    MySQLTriggerSQLSource,
    PostgreSQLTriggerSQLSource,
    SQLiteTriggerSQLSource,
)

logger = logging.getLogger(__name__)

_BUILTIN_SOURCES: dict[str, type[TriggerSQLSource]] = {
    "postgresql": PostgreSQLTriggerSQLSource,
    "postgres": PostgreSQLTriggerSQLSource,
    "mysql": MySQLTriggerSQLSource,
    "mariadb": MySQLTriggerSQLSource,
    "sqlite": SQLiteTriggerSQLSource,
}


class TriggerCreationStrategy(str, Enum):
    CREATE = "create"
    DROP_CREATE = "drop-create"
    DONT_CREATE = "dont-create"


@dataclass(frozen=True, slots=True)
class PlannedStatement:
    sql: str
    drop: bool


@dataclass
class TriggerSetupReport:
    executed: int = 0
    failed: list[str] = field(default_factory=list)


def resolve_trigger_source(reference: str | TriggerSQLSource | type[TriggerSQLSource]) -> TriggerSQLSource:
    """Resolve a dialect shorthand, a ``package.module:Class`` path, a class or an instance."""
    if isinstance(reference, TriggerSQLSource):
        return reference
    if isinstance(reference, type):
        if not issubclass(reference, TriggerSQLSource):
            raise ConfigurationError(f"{reference.__qualname__} is not a TriggerSQLSource")
        return reference()
    name = (reference or "").strip()
    if not name:
        raise ConfigurationError("No trigger source configured")
    builtin = _BUILTIN_SOURCES.get(name.lower())
    if builtin is not None:
        return builtin()
    module_name, sep, attr = name.partition(":")
    if not sep:
        module_name, _, attr = name.rpartition(".")
    try:
        target = getattr(importlib.import_module(module_name), attr) if module_name and attr else None
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Trigger source {name!r} could not be found") from exc
    if not isinstance(target, type) or not issubclass(target, TriggerSQLSource):
        raise ConfigurationError(f"Trigger source {name!r} is not a TriggerSQLSource class")
    return target()


def plan_statements(
    source: TriggerSQLSource,
    infos: Sequence[EventModelInfo],
    strategy: TriggerCreationStrategy | str,
) -> list[PlannedStatement]:
    """List the statements a strategy runs, in execution order."""
    try:
        strategy = TriggerCreationStrategy(strategy)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown trigger creation strategy {strategy!r}") from exc
    if strategy is TriggerCreationStrategy.DONT_CREATE:
        return []
    drop = strategy is TriggerCreationStrategy.DROP_CREATE
    plan: list[PlannedStatement] = []

    def add(statements: list[str], is_drop: bool) -> None:
        plan.extend(PlannedStatement(sql, is_drop) for sql in statements)

    for info in infos:
        if drop:
            add(source.capture_table_drop_code(info), True)
        add(source.capture_table_create_code(info), False)
    if drop:
        add(source.teardown_code(), True)
    add(source.setup_code(), False)
    for info in infos:
        if drop:
            add(source.specific_teardown_code(info), True)
        add(source.specific_setup_code(info), False)
        if drop:
            for event_type in EventType.captured():
                add(source.trigger_drop_code(info, event_type), True)
        for event_type in EventType.captured():
            add(source.trigger_create_code(info, event_type), False)
    return plan


async def apply_trigger_strategy(
    engine: AsyncEngine,
    source: TriggerSQLSource,
    infos: Sequence[EventModelInfo],
    strategy: TriggerCreationStrategy | str,
) -> TriggerSetupReport:
    """Run the planned statements one transaction each.

    Failures never abort the setup. Failed drops are expected when the
    object does not exist yet. Failed creates usually mean the object is
    already there, but they can also mean the schema has diverged, so they
    are logged at warning level with the statement.
    """
    report = TriggerSetupReport()
    for statement in plan_statements(source, infos, strategy):
        logger.info("%s", statement.sql)
        try:
            async with engine.begin() as conn:
                await conn.exec_driver_sql(statement.sql)
        except Exception as exc:
            report.failed.append(statement.sql)
            if statement.drop:
                logger.warning("drop statement failed (expected if the object does not exist): %s", exc)
            else:
                logger.warning("create statement failed (objects may already exist): %s (%s)", exc, statement.sql)
            continue
        report.executed += 1
    logger.info(
        "trigger setup finished: %d statements executed, %d failed",
        report.executed,
        len(report.failed),
    )
    return report
