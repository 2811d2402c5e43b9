"""Entity providers: fetch current entity snapshots during one dispatch."""

from __future__ import annotations

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class EntityProvider(Protocol):
    """Session-scoped snapshot access. open() and close() bracket one batch."""

    async def open(self) -> None: ...

    async def close(self) -> None: ...

    async def get(self, entity_type: type, entity_id: Any) -> Any | None: ...


class SQLAlchemyEntityProvider:
    """EntityProvider backed by an async SQLAlchemy session factory.

    A fresh session is opened per batch, so snapshots always come from the
    database and never from an identity map kept across ticks.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def open(self) -> None:
        if self._session is not None:
            raise RuntimeError("entity provider is already open")
        self._session = self._session_factory()

    async def close(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await session.close()

    async def get(self, entity_type: type, entity_id: Any) -> Any | None:
        if self._session is None:
            raise RuntimeError("entity provider is not open; call open() first")
        return await self._session.get(entity_type, entity_id, populate_existing=True)

    async def __aenter__(self) -> SQLAlchemyEntityProvider:
        await self.open()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
