"""Trigger SQL sources for PostgreSQL, MySQL and SQLite."""

from __future__ import annotations

from triggersearch.events.model import EventModelInfo
from triggersearch.events.types import EventType
from triggersearch.triggers.base import TriggerSQLSource


class PostgreSQLTriggerSQLSource(TriggerSQLSource):
    """plpgsql trigger functions, one per capture table and event type."""

    dialect = "postgresql"
    delimited_identifier_token = '"'

    def function_name(self, info: EventModelInfo, event_type: EventType) -> str:
        return f"{self.trigger_name(info, event_type)}_fn"

    def capture_table_create_code(self, info: EventModelInfo) -> list[str]:
        columns = [f"{self.quote(info.key_column)} BIGSERIAL PRIMARY KEY"]
        columns += [f"{self.quote(c.capture_column)} {c.sql_type} NOT NULL" for c in info.id_columns]
        columns.append(f"{self.quote(info.event_type_column)} INTEGER NOT NULL")
        return [f"CREATE TABLE IF NOT EXISTS {self.quote(info.capture_table)} ({', '.join(columns)})"]

    def capture_table_drop_code(self, info: EventModelInfo) -> list[str]:
        return [f"DROP TABLE IF EXISTS {self.quote(info.capture_table)}"]

    def trigger_create_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        function = self.quote(self.function_name(info, event_type))
        return [
            (
                f"CREATE OR REPLACE FUNCTION {function}() RETURNS TRIGGER AS $$ "
                f"BEGIN {self.capture_insert_sql(info, event_type)}; RETURN NULL; END; "
                "$$ LANGUAGE plpgsql"
            ),
            (
                f"CREATE TRIGGER {self.quote(self.trigger_name(info, event_type))} "
                f"AFTER {event_type.name} ON {self.quote(info.source_table)} "
                f"FOR EACH ROW EXECUTE PROCEDURE {function}()"
            ),
        ]

    def trigger_drop_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        return [
            (
                f"DROP TRIGGER IF EXISTS {self.quote(self.trigger_name(info, event_type))} "
                f"ON {self.quote(info.source_table)}"
            ),
            f"DROP FUNCTION IF EXISTS {self.quote(self.function_name(info, event_type))}()",
        ]


class MySQLTriggerSQLSource(TriggerSQLSource):
    dialect = "mysql"
    delimited_identifier_token = "`"

    def capture_table_create_code(self, info: EventModelInfo) -> list[str]:
        columns = [f"{self.quote(info.key_column)} BIGINT NOT NULL AUTO_INCREMENT PRIMARY KEY"]
        columns += [f"{self.quote(c.capture_column)} {c.sql_type} NOT NULL" for c in info.id_columns]
        columns.append(f"{self.quote(info.event_type_column)} INT NOT NULL")
        return [f"CREATE TABLE IF NOT EXISTS {self.quote(info.capture_table)} ({', '.join(columns)})"]

    def capture_table_drop_code(self, info: EventModelInfo) -> list[str]:
        return [f"DROP TABLE IF EXISTS {self.quote(info.capture_table)}"]

    def trigger_create_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        return [
            f"CREATE TRIGGER {self.quote(self.trigger_name(info, event_type))} "
            f"AFTER {event_type.name} ON {self.quote(info.source_table)} "
            f"FOR EACH ROW {self.capture_insert_sql(info, event_type)}"
        ]

    def trigger_drop_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        return [f"DROP TRIGGER IF EXISTS {self.quote(self.trigger_name(info, event_type))}"]


class SQLiteTriggerSQLSource(TriggerSQLSource):
    dialect = "sqlite"
    delimited_identifier_token = '"'

    def capture_table_create_code(self, info: EventModelInfo) -> list[str]:
        columns = [f"{self.quote(info.key_column)} INTEGER PRIMARY KEY AUTOINCREMENT"]
        columns += [f"{self.quote(c.capture_column)} {c.sql_type} NOT NULL" for c in info.id_columns]
        columns.append(f"{self.quote(info.event_type_column)} INTEGER NOT NULL")
        return [f"CREATE TABLE IF NOT EXISTS {self.quote(info.capture_table)} ({', '.join(columns)})"]

    def capture_table_drop_code(self, info: EventModelInfo) -> list[str]:
        return [f"DROP TABLE IF EXISTS {self.quote(info.capture_table)}"]

    def trigger_create_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        return [
            f"CREATE TRIGGER IF NOT EXISTS {self.quote(self.trigger_name(info, event_type))} "
            f"AFTER {event_type.name} ON {self.quote(info.source_table)} "
            f"FOR EACH ROW BEGIN {self.capture_insert_sql(info, event_type)}; END"
        ]

    def trigger_drop_code(self, info: EventModelInfo, event_type: EventType) -> list[str]:
        return [f"DROP TRIGGER IF EXISTS {self.quote(self.trigger_name(info, event_type))}"]
