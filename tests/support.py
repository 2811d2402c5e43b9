"""Fakes shared by the triggersearch unit tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from triggersearch.events import CaptureEvent, EventType
from triggersearch.index import IdField, IndexMapping, IndexMappings


@dataclass
class Place:
    id: int
    name: str
    sorcerer_ids: list[int] = field(default_factory=list)


@dataclass
class Sorcerer:
    id: int
    name: str


@dataclass
class AuditEntry:
    id: int


def place_mappings() -> IndexMappings:
    """Place documents embed the ids of their sorcerers."""
    return IndexMappings.of(
        [
            IndexMapping(
                indexed_type=Place,
                id_fields={Place: IdField("id"), Sorcerer: IdField("sorcerer_ids")},
                fields=("id", "name", "sorcerer_ids"),
            )
        ]
    )


def event(entity_type: type, entity_id: Any, event_type: EventType, key: int, table: str = "") -> CaptureEvent:
    return CaptureEvent(
        entity_type=entity_type,
        entity_id=entity_id,
        event_type=event_type,
        key=key,
        capture_table=table or f"{entity_type.__name__.lower()}_updates",
    )


class FakeEntityProvider:
    """Dict-backed EntityProvider that records its session scopes."""

    def __init__(self, entities: dict[tuple[type, Any], Any] | None = None) -> None:
        self.entities: dict[tuple[type, Any], Any] = dict(entities or {})
        self.opened = 0
        self.closed = 0
        self.gets: list[tuple[type, Any]] = []
        self.fail_on_get: Exception | None = None
        self._open = False

    def put(self, entity: Any) -> None:
        self.entities[(type(entity), entity.id)] = entity

    def remove(self, entity_type: type, entity_id: Any) -> None:
        self.entities.pop((entity_type, entity_id), None)

    async def open(self) -> None:
        assert not self._open, "provider opened twice"
        self._open = True
        self.opened += 1

    async def close(self) -> None:
        self._open = False
        self.closed += 1

    async def get(self, entity_type: type, entity_id: Any) -> Any | None:
        assert self._open, "get() outside open()/close()"
        self.gets.append((entity_type, entity_id))
        if self.fail_on_get is not None:
            raise self.fail_on_get
        return self.entities.get((entity_type, entity_id))


class ListPageSource:
    """In-memory PageSource over a fixed list of events; records fetches."""

    def __init__(self, name: str, events: list[CaptureEvent]) -> None:
        self._name = name
        self._events = sorted(events, key=lambda e: e.key)
        self.fetches: list[tuple[int | None, int]] = []

    @property
    def name(self) -> str:
        return self._name

    async def fetch_page(self, after_key: int | None, limit: int) -> list[CaptureEvent]:
        self.fetches.append((after_key, limit))
        remaining = [e for e in self._events if after_key is None or e.key > after_key]
        return remaining[:limit]
