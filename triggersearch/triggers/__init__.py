"""Capture-table and trigger DDL: dialect sources and the setup strategy runner."""

from triggersearch.triggers.base import TriggerSQLSource
from triggersearch.triggers.dialects import (
    MySQLTriggerSQLSource,
    PostgreSQLTriggerSQLSource,
    SQLiteTriggerSQLSource,
)
from triggersearch.triggers.strategy import (
    PlannedStatement,
    TriggerCreationStrategy,
    TriggerSetupReport,
    apply_trigger_strategy,
    plan_statements,
    resolve_trigger_source,
)

__all__ = [
    "MySQLTriggerSQLSource",
    "PlannedStatement",
    "PostgreSQLTriggerSQLSource",
    "SQLiteTriggerSQLSource",
    "TriggerCreationStrategy",
    "TriggerSQLSource",
    "TriggerSetupReport",
    "apply_trigger_strategy",
    "plan_statements",
    "resolve_trigger_source",
]
