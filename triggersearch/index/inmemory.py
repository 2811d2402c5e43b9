"""In-memory IndexBackend: dict documents keyed by id (tests and manual setups)."""

from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from dataclasses import dataclass
from typing import Any

from triggersearch.index.backend import IndexBackend, IndexTransaction
from triggersearch.index.mapping import IndexMapping, IndexMappings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IndexOperation:
    """One committed mutation, kept in the backend's operation log."""

    kind: str
    indexed_type: type
    field: str
    value: Any


def _field_matches(mapping: IndexMapping, field_name: str, stored: Any, value: Any) -> bool:
    # list/set values are multi-valued fields; tuples are composite ids
    candidates = list(stored) if isinstance(stored, (list, set, frozenset)) else [stored]
    id_field = next((f for f in mapping.id_fields.values() if f.name == field_name), None)
    for candidate in candidates:
        encoded = id_field.index_value(candidate) if id_field is not None else candidate
        if encoded == value:
            return True
    return False


class InMemoryIndexTransaction(IndexTransaction):
    def __init__(self, backend: InMemoryIndexBackend) -> None:
        self._backend = backend
        self._staged: list[tuple[IndexOperation, dict[str, Any] | None]] = []
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("index transaction already committed or rolled back")

    def _stage_document(self, kind: str, entity: Any) -> None:
        self._check_open()
        mapping = self._backend.mappings.mapping_for(type(entity))
        if mapping is None:
            logger.debug("entity type %s is not an indexed root; no document written", type(entity).__qualname__)
            return
        # documents are built now, while the entity's session is still open
        doc = mapping.build_document(entity)
        id_field = mapping.own_id_field
        key = id_field.index_value(doc[id_field.name])
        self._staged.append((IndexOperation(kind, mapping.indexed_type, id_field.name, key), doc))

    async def index(self, entity: Any) -> None:
        self._stage_document("index", entity)

    async def update(self, entity: Any) -> None:
        self._stage_document("update", entity)

    async def delete_by_field(self, indexed_type: type, field_name: str, value: Any) -> None:
        self._check_open()
        self._staged.append((IndexOperation("delete", indexed_type, field_name, value), None))

    async def commit(self) -> None:
        self._check_open()
        self._closed = True
        async with self._backend.lock:
            self._backend.apply(self._staged)
        self._staged = []

    async def rollback(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._staged = []


class InMemoryIndexBackend(IndexBackend):
    """Documents per indexed type, keyed by the encoded own id (index == upsert)."""

    def __init__(self, mappings: IndexMappings) -> None:
        self.mappings = mappings
        self.lock = asyncio.Lock()
        self._documents: dict[type, dict[Any, dict[str, Any]]] = {}
        self.operations: list[IndexOperation] = []

    async def begin(self) -> InMemoryIndexTransaction:
        return InMemoryIndexTransaction(self)

    def apply(self, staged: list[tuple[IndexOperation, dict[str, Any] | None]]) -> None:
        for operation, doc in staged:
            documents = self._documents.setdefault(operation.indexed_type, {})
            if operation.kind == "delete":
                mapping = self.mappings.mapping_for(operation.indexed_type)
                if mapping is None:
                    continue
                doomed = [
                    key
                    for key, stored in documents.items()
                    if operation.field in stored
                    and _field_matches(mapping, operation.field, stored[operation.field], operation.value)
                ]
                for key in doomed:
                    del documents[key]
            else:
                documents[operation.value] = deepcopy(doc) if doc is not None else {}
            self.operations.append(operation)

    def documents(self, indexed_type: type) -> list[dict[str, Any]]:
        return [deepcopy(doc) for doc in self._documents.get(indexed_type, {}).values()]

    def get(self, indexed_type: type, key: Any) -> dict[str, Any] | None:
        doc = self._documents.get(indexed_type, {}).get(key)
        return deepcopy(doc) if doc is not None else None

    def count(self, indexed_type: type) -> int:
        return len(self._documents.get(indexed_type, {}))
