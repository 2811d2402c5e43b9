"""Two-way value encoders between entity id values and their on-index form."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import Any


class FieldType(str, Enum):
    """Value type of an indexed field."""

    STRING = "string"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"


class ValueEncoder(ABC):
    """Convert a value to the string stored in the index and back."""

    @abstractmethod
    def to_index(self, value: Any) -> str: ...

    @abstractmethod
    def from_index(self, text: str) -> Any: ...


class StringEncoder(ValueEncoder):
    def to_index(self, value: Any) -> str:
        return str(value)

    def from_index(self, text: str) -> Any:
        return text


class IntegerEncoder(ValueEncoder):
    """Integers stored as decimal text."""

    def to_index(self, value: Any) -> str:
        return str(int(value))

    def from_index(self, text: str) -> Any:
        return int(text)


class UUIDEncoder(ValueEncoder):
    def to_index(self, value: Any) -> str:
        return str(value if isinstance(value, uuid.UUID) else uuid.UUID(str(value)))

    def from_index(self, text: str) -> Any:
        return uuid.UUID(text)


class CompositeIdEncoder(ValueEncoder):
    """Encode a composite id (tuple) by joining its encoded parts.

    Parts must not contain the separator once encoded.
    """

    def __init__(self, parts: Sequence[ValueEncoder], separator: str = "_") -> None:
        if not parts:
            raise ValueError("CompositeIdEncoder needs at least one part encoder")
        if not separator:
            raise ValueError("separator must be non-empty")
        self._parts = tuple(parts)
        self._separator = separator

    def to_index(self, value: Any) -> str:
        values = tuple(value)
        if len(values) != len(self._parts):
            raise ValueError(f"expected {len(self._parts)} id parts, got {len(values)}")
        encoded = [encoder.to_index(part) for encoder, part in zip(self._parts, values, strict=True)]
        for text in encoded:
            if self._separator in text:
                raise ValueError(f"id part {text!r} contains separator {self._separator!r}")
        return self._separator.join(encoded)

    def from_index(self, text: str) -> Any:
        pieces = text.split(self._separator)
        if len(pieces) != len(self._parts):
            raise ValueError(f"expected {len(self._parts)} id parts in {text!r}")
        return tuple(encoder.from_index(piece) for encoder, piece in zip(self._parts, pieces, strict=True))
