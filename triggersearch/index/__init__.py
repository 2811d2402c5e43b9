"""Search index side: mappings, value encoders, backends and the index updater."""

from triggersearch.index.backend import IndexBackend, IndexTransaction
from triggersearch.index.encoders import (
    CompositeIdEncoder,
    FieldType,
    IntegerEncoder,
    StringEncoder,
    UUIDEncoder,
    ValueEncoder,
)
from triggersearch.index.inmemory import InMemoryIndexBackend, IndexOperation
from triggersearch.index.mapping import IdField, IndexMapping, IndexMappings
from triggersearch.index.updater import IndexUpdater, collapse_events

__all__ = [
    "CompositeIdEncoder",
    "FieldType",
    "IdField",
    "InMemoryIndexBackend",
    "IndexBackend",
    "IndexMapping",
    "IndexMappings",
    "IndexOperation",
    "IndexTransaction",
    "IndexUpdater",
    "IntegerEncoder",
    "StringEncoder",
    "UUIDEncoder",
    "ValueEncoder",
    "collapse_events",
]
