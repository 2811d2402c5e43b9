"""Configuration models for triggersearch."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from triggersearch.events.model import (
    DEFAULT_EVENT_TYPE_COLUMN,
    DEFAULT_KEY_COLUMN,
    IdColumn,
    WatchedEntity,
)


class IdColumnConfig(BaseModel):
    """One id column mirrored from the source table into the capture table."""

    capture_column: str
    source_column: str
    sql_type: str = Field(default="BIGINT", description="DDL type of the capture column.")


class WatchedEntityConfig(BaseModel):
    """Declarative description of one capture table."""

    entity: str = Field(description="Originating entity class as 'package.module:Class'.")
    capture_table: str
    source_table: str | None = None
    ids: list[IdColumnConfig] = Field(default_factory=list)
    event_type_column: str = DEFAULT_EVENT_TYPE_COLUMN
    key_column: str = DEFAULT_KEY_COLUMN

    def to_watched_entity(self) -> WatchedEntity:
        return WatchedEntity(
            entity=self.entity,
            capture_table=self.capture_table,
            id_columns=[
                IdColumn(capture_column=c.capture_column, source_column=c.source_column, sql_type=c.sql_type)
                for c in self.ids
            ],
            source_table=self.source_table,
            event_type_column=self.event_type_column,
            key_column=self.key_column,
        )


class TriggerSearchConfig(BaseSettings):
    """Root configuration model for triggersearch."""

    name: str = Field(default="default", description="Instance name, used in log messages.")
    type: Literal["sql", "manual-updates"] = "sql"
    database_url: str | None = None
    trigger_source: str | None = Field(
        default=None,
        description="Dialect shorthand (postgresql, mysql, sqlite) or 'package.module:Class'.",
    )
    trigger_creation_strategy: Literal["create", "drop-create", "dont-create"] = "create"
    update_delay_seconds: float = Field(default=0.5, gt=0)
    batch_size_for_updates: int = Field(default=5, ge=1)
    batch_size_for_update_queries: int = Field(default=50, ge=1)
    watched_entities: list[WatchedEntityConfig] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="TRIGGERSEARCH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @field_validator("name")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("must be non-empty")
        return normalized

    def watched(self) -> list[WatchedEntity]:
        return [entry.to_watched_entity() for entry in self.watched_entities]
