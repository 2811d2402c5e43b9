"""Index backend abstraction: transactional index mutations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class IndexTransaction(ABC):
    """One atomic unit of index work: either everything commits or nothing does."""

    @abstractmethod
    async def index(self, entity: Any) -> None:
        """Add the document of a new entity."""
        ...

    @abstractmethod
    async def update(self, entity: Any) -> None:
        """Replace the document of an existing entity."""
        ...

    @abstractmethod
    async def delete_by_field(self, indexed_type: type, field_name: str, value: Any) -> None:
        """Delete documents of ``indexed_type`` whose ``field_name`` equals ``value``."""
        ...

    @abstractmethod
    async def commit(self) -> None: ...

    @abstractmethod
    async def rollback(self) -> None: ...


class IndexBackend(ABC):
    """Search index the updater writes to."""

    @abstractmethod
    async def begin(self) -> IndexTransaction:
        """Start a transaction."""
        ...
