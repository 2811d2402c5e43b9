"""Index mappings: which indexed types embed which entity types, and under which id field."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from triggersearch.exceptions import ConfigurationError
from triggersearch.index.encoders import FieldType, ValueEncoder

DocumentBuilder = Callable[[Any], dict[str, Any]]


@dataclass(frozen=True, slots=True)
class IdField:
    """Indexed field holding the id of one entity type."""

    name: str
    field_type: FieldType = FieldType.LONG
    encoder: ValueEncoder | None = None

    def index_value(self, value: Any) -> Any:
        """Convert an entity id to the value stored in this field.

        Raises:
            ConfigurationError: string-typed field without an encoder.
        """
        if self.field_type is FieldType.STRING:
            if self.encoder is None:
                raise ConfigurationError(f"no two-way value encoder registered for string field {self.name!r}")
            return self.encoder.to_index(value)
        if self.encoder is not None:
            return self.encoder.to_index(value)
        return value


@dataclass(slots=True)
class IndexMapping:
    """Mapping of one indexed (root) type.

    ``id_fields`` maps every entity type whose changes affect documents of
    ``indexed_type`` (the type itself included) to the field carrying that
    entity's id. ``document`` builds the document of an instance; without it
    the attributes named in ``fields`` are copied.
    """

    indexed_type: type
    id_fields: Mapping[type, IdField]
    fields: tuple[str, ...] = ()
    document: DocumentBuilder | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if self.indexed_type not in self.id_fields:
            raise ConfigurationError(
                f"index mapping for {self.indexed_type.__qualname__} has no id field for the indexed type itself"
            )
        if not self.name:
            self.name = self.indexed_type.__qualname__

    @property
    def own_id_field(self) -> IdField:
        return self.id_fields[self.indexed_type]

    def id_field_for(self, entity_type: type) -> IdField | None:
        return self.id_fields.get(entity_type)

    def build_document(self, entity: Any) -> dict[str, Any]:
        if self.document is not None:
            doc = dict(self.document(entity))
        else:
            doc = {name: getattr(entity, name) for name in self.fields}
        id_field = self.own_id_field
        if id_field.name not in doc:
            doc[id_field.name] = getattr(entity, id_field.name)
        return doc


class IndexMappings:
    """Registry of index mappings, looked up by indexed type or contained entity type."""

    def __init__(self) -> None:
        self._mappings: dict[type, IndexMapping] = {}

    @classmethod
    def of(cls, mappings: Iterable[IndexMapping]) -> IndexMappings:
        registry = cls()
        for mapping in mappings:
            registry.add(mapping)
        return registry

    def add(self, mapping: IndexMapping) -> None:
        if mapping.indexed_type in self._mappings:
            raise ConfigurationError(f"{mapping.indexed_type.__qualname__} is mapped more than once")
        self._mappings[mapping.indexed_type] = mapping

    def __iter__(self) -> Iterator[IndexMapping]:
        return iter(self._mappings.values())

    def __len__(self) -> int:
        return len(self._mappings)

    def mapping_for(self, indexed_type: type) -> IndexMapping | None:
        mapping = self._mappings.get(indexed_type)
        if mapping is not None:
            return mapping
        for base in indexed_type.__mro__[1:]:
            mapping = self._mappings.get(base)
            if mapping is not None:
                return mapping
        return None

    def containing(self, entity_type: type) -> list[IndexMapping]:
        """Mappings whose documents embed ``entity_type``, in registration order."""
        return [mapping for mapping in self._mappings.values() if entity_type in mapping.id_fields]

    def validate(self) -> None:
        """Fail fast on string id fields that have no encoder."""
        for mapping in self._mappings.values():
            for entity_type, id_field in mapping.id_fields.items():
                if id_field.field_type is FieldType.STRING and id_field.encoder is None:
                    raise ConfigurationError(
                        f"{mapping.name}: string id field {id_field.name!r} for "
                        f"{entity_type.__qualname__} has no two-way value encoder"
                    )
