"""Capture-table descriptors built from declared watched entities."""

from __future__ import annotations

import importlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from triggersearch.exceptions import ConfigurationError

DEFAULT_KEY_COLUMN = "updateid"
DEFAULT_EVENT_TYPE_COLUMN = "eventcase"


@dataclass(frozen=True, slots=True)
class IdColumn:
    """One column of the entity id as mirrored into the capture table."""

    capture_column: str
    source_column: str
    sql_type: str = "BIGINT"


@dataclass(frozen=True, slots=True)
class EventModelInfo:
    """Immutable description of one watched entity's capture table."""

    entity_type: type
    capture_table: str
    source_table: str
    id_columns: tuple[IdColumn, ...]
    event_type_column: str = DEFAULT_EVENT_TYPE_COLUMN
    key_column: str = DEFAULT_KEY_COLUMN

    @property
    def entity_name(self) -> str:
        return f"{self.entity_type.__module__}.{self.entity_type.__qualname__}"

    @property
    def composite_id(self) -> bool:
        return len(self.id_columns) > 1

    def entity_id_from_row(self, values: Sequence[Any]) -> Any:
        """Build the entity id from id column values given in declaration order."""
        if len(values) != len(self.id_columns):
            raise ValueError(
                f"expected {len(self.id_columns)} id values for {self.capture_table}, got {len(values)}"
            )
        if self.composite_id:
            return tuple(values)
        return values[0]


@dataclass(slots=True)
class WatchedEntity:
    """Declarative description of an entity whose table is watched by triggers.

    ``entity`` is either the class itself or a ``package.module:Class`` path.
    ``source_table`` defaults to the table of the entity's SQLAlchemy mapping.
    """

    entity: type | str | None
    capture_table: str
    id_columns: list[IdColumn] = field(default_factory=list)
    source_table: str | None = None
    event_type_column: str | None = DEFAULT_EVENT_TYPE_COLUMN
    key_column: str | None = DEFAULT_KEY_COLUMN


def resolve_entity_type(reference: str) -> type:
    """Import ``package.module:Class`` (or ``package.module.Class``) and return the class."""
    ref = reference.strip()
    if ":" in ref:
        module_name, _, attr_path = ref.partition(":")
    else:
        module_name, _, attr_path = ref.rpartition(".")
    if not module_name or not attr_path:
        raise ConfigurationError(f"Invalid entity reference {reference!r}; expected 'package.module:Class'")
    try:
        target: Any = importlib.import_module(module_name)
        for part in attr_path.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f"Entity reference {reference!r} could not be resolved") from exc
    if not isinstance(target, type):
        raise ConfigurationError(f"Entity reference {reference!r} does not name a class")
    return target


def _mapped_table_name(entity_type: type) -> str | None:
    table = getattr(entity_type, "__table__", None)
    name = getattr(table, "name", None)
    if isinstance(name, str) and name:
        return name
    tablename = getattr(entity_type, "__tablename__", None)
    if isinstance(tablename, str) and tablename:
        return tablename
    return None


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class EventModelBuilder:
    """Collect watched-entity declarations and build their EventModelInfo list.

    Usage::

        infos = (
            EventModelBuilder()
            .watch(Place, capture_table="place_updates", ids=[IdColumn("placefk", "id")])
            .build()
        )
    """

    def __init__(self) -> None:
        self._declarations: list[WatchedEntity] = []

    def add(self, declaration: WatchedEntity) -> EventModelBuilder:
        self._declarations.append(declaration)
        return self

    def watch(
        self,
        entity: type | str | None,
        *,
        capture_table: str,
        ids: Iterable[IdColumn],
        source_table: str | None = None,
        event_type_column: str | None = DEFAULT_EVENT_TYPE_COLUMN,
        key_column: str | None = DEFAULT_KEY_COLUMN,
    ) -> EventModelBuilder:
        return self.add(
            WatchedEntity(
                entity=entity,
                capture_table=capture_table,
                id_columns=list(ids),
                source_table=source_table,
                event_type_column=event_type_column,
                key_column=key_column,
            )
        )

    def build(self) -> list[EventModelInfo]:
        """Validate every declaration; raise ConfigurationError on the first problem."""
        return build_event_models(self._declarations)


def build_event_model(declaration: WatchedEntity) -> EventModelInfo:
    capture_table = _non_empty(declaration.capture_table)
    if capture_table is None:
        raise ConfigurationError("Watched entity is missing its capture table name")
    entity = declaration.entity
    if entity is None or (isinstance(entity, str) and not entity.strip()):
        raise ConfigurationError(f"Capture table {capture_table!r} does not reference an originating entity")
    entity_type = resolve_entity_type(entity) if isinstance(entity, str) else entity
    if not declaration.id_columns:
        raise ConfigurationError(f"Capture table {capture_table!r} has no id column mapping")
    for id_column in declaration.id_columns:
        if not _non_empty(id_column.capture_column) or not _non_empty(id_column.source_column):
            raise ConfigurationError(
                f"Capture table {capture_table!r} has an id mapping without capture or source column"
            )
    event_type_column = _non_empty(declaration.event_type_column)
    if event_type_column is None:
        raise ConfigurationError(f"Capture table {capture_table!r} has no event type column")
    key_column = _non_empty(declaration.key_column)
    if key_column is None:
        raise ConfigurationError(f"Capture table {capture_table!r} has no ordering key column")
    source_table = _non_empty(declaration.source_table) or _mapped_table_name(entity_type)
    if source_table is None:
        raise ConfigurationError(
            f"Capture table {capture_table!r}: source table not given and "
            f"{entity_type.__qualname__} is not a mapped SQLAlchemy class"
        )
    return EventModelInfo(
        entity_type=entity_type,
        capture_table=capture_table,
        source_table=source_table,
        id_columns=tuple(declaration.id_columns),
        event_type_column=event_type_column,
        key_column=key_column,
    )


def build_event_models(declarations: Iterable[WatchedEntity]) -> list[EventModelInfo]:
    """Build descriptors in input order; duplicate capture tables are rejected."""
    infos: list[EventModelInfo] = []
    seen: set[str] = set()
    for declaration in declarations:
        info = build_event_model(declaration)
        if info.capture_table in seen:
            raise ConfigurationError(f"Capture table {info.capture_table!r} is declared more than once")
        seen.add(info.capture_table)
        infos.append(info)
    return infos
