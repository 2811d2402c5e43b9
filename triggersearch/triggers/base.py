"""Trigger SQL source contract.

A trigger source turns an EventModelInfo into raw SQL text for one dialect.
The statements are executed verbatim without parameter binding, so every
identifier is quoted here with the dialect's quoting token.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from triggersearch.events.model import EventModelInfo
from triggersearch.events.types import EventType


class TriggerSQLSource(ABC):
    """Per-dialect generator of capture-table and trigger DDL."""

    dialect: str = ""
    delimited_identifier_token: str = '"'

    def quote(self, identifier: str) -> str:
        token = self.delimited_identifier_token
        return f"{token}{identifier.replace(token, token * 2)}{token}"

    def trigger_name(self, info: EventModelInfo, event_type: EventType) -> str:
        return f"{info.capture_table}_{event_type.name.lower()}"

    @staticmethod
    def row_alias(event_type: EventType) -> str:
        """Row variable holding the id inside the trigger body."""
        return "OLD" if event_type is EventType.DELETE else "NEW"

    @staticmethod
    def event_code(event_type: EventType) -> int:
        if event_type not in EventType.captured():
            raise ValueError(f"no trigger for event type {event_type.name}")
        return int(event_type.value)

    def capture_insert_sql(self, info: EventModelInfo, event_type: EventType) -> str:
        """INSERT statement run by the trigger body for one row change."""
        row = self.row_alias(event_type)
        columns = [self.quote(c.capture_column) for c in info.id_columns]
        columns.append(self.quote(info.event_type_column))
        values = [f"{row}.{self.quote(c.source_column)}" for c in info.id_columns]
        values.append(str(self.event_code(event_type)))
        return (
            f"INSERT INTO {self.quote(info.capture_table)} ({', '.join(columns)}) "
            f"VALUES ({', '.join(values)})"
        )

    def setup_code(self) -> list[str]:
        """One-time statements shared by all capture tables."""
        return []

    def teardown_code(self) -> list[str]:
        return []

    def specific_setup_code(self, info: EventModelInfo) -> list[str]:
        """Statements needed once per capture table before its triggers."""
        return []

    def specific_teardown_code(self, info: EventModelInfo) -> list[str]:
        return []

    @abstractmethod
    def capture_table_create_code(self, info: EventModelInfo) -> list[str]: ...

    @abstractmethod
    def capture_table_drop_code(self, info: EventModelInfo) -> list[str]: ...

    @abstractmethod
    def trigger_create_code(self, info: EventModelInfo, event_type: EventType) -> list[str]: ...

    @abstractmethod
    def trigger_drop_code(self, info: EventModelInfo, event_type: EventType) -> list[str]: ...
