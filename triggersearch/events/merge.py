"""Merge cursor over several independently paged capture-table streams.

Each capture table is its own ascending sequence of keys. The cursor keeps
one bounded page per stream in memory and always hands out the smallest key
among the page heads. Keys of different tables share no clock: when two
streams present the same key the stream registered first wins. That
tie-break is a fixed policy of this cursor and says nothing about the real
order of the underlying writes.
"""

from __future__ import annotations

import heapq
import logging
from collections import deque
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy import column, select, table
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql.expression import TableClause

from triggersearch.events.model import EventModelInfo
from triggersearch.events.types import CaptureEvent, EventType
from triggersearch.exceptions import CursorStateError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


class PageSource(Protocol):
    """One capture-table stream that can be read page by page."""

    @property
    def name(self) -> str: ...

    async def fetch_page(self, after_key: int | None, limit: int) -> list[CaptureEvent]:
        """Return up to ``limit`` events with key > ``after_key``, ascending by key."""
        ...


def capture_table_clause(info: EventModelInfo) -> TableClause:
    """Lightweight Core table for a capture table (no metadata, no reflection)."""
    return table(
        info.capture_table,
        column(info.key_column),
        *(column(id_column.capture_column) for id_column in info.id_columns),
        column(info.event_type_column),
    )


class SQLCapturePageSource:
    """PageSource reading one capture table over an open async connection."""

    def __init__(self, info: EventModelInfo, connection: AsyncConnection) -> None:
        self._info = info
        self._connection = connection
        self._table = capture_table_clause(info)

    @property
    def name(self) -> str:
        return self._info.capture_table

    @property
    def info(self) -> EventModelInfo:
        return self._info

    async def fetch_page(self, after_key: int | None, limit: int) -> list[CaptureEvent]:
        info = self._info
        key = self._table.c[info.key_column]
        stmt = (
            select(
                key,
                *(self._table.c[id_column.capture_column] for id_column in info.id_columns),
                self._table.c[info.event_type_column],
            )
            .order_by(key)
            .limit(limit)
        )
        if after_key is not None:
            stmt = stmt.where(key > after_key)
        result = await self._connection.execute(stmt)
        events: list[CaptureEvent] = []
        for row in result.all():
            values = tuple(row)
            events.append(
                CaptureEvent(
                    entity_type=info.entity_type,
                    entity_id=info.entity_id_from_row(values[1:-1]),
                    event_type=EventType.from_code(values[-1]),
                    key=int(values[0]),
                    capture_table=info.capture_table,
                )
            )
        return events


@dataclass
class _Stream:
    index: int
    source: PageSource
    last_key: int | None
    page: deque[CaptureEvent] = field(default_factory=deque)
    exhausted: bool = False


class MergeCursor:
    """Present N per-table ascending streams as one sequence ordered by key.

    ``after`` maps a source name to the last key already consumed from it;
    ``limit`` caps the total number of events returned.
    """

    def __init__(
        self,
        sources: Sequence[PageSource],
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        after: Mapping[str, int] | None = None,
        limit: int | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        start = after or {}
        self._streams = [
            _Stream(index=i, source=source, last_key=start.get(source.name))
            for i, source in enumerate(sources)
        ]
        self._page_size = page_size
        self._limit = limit
        self._heap: list[tuple[int, int]] = []
        self._pending_refill: int | None = None
        self._current: CaptureEvent | None = None
        self._returned = 0
        self._started = False
        self._closed = False

    @property
    def returned(self) -> int:
        return self._returned

    async def advance(self) -> bool:
        """Move to the next event; False once every stream is exhausted or the limit is hit."""
        self._current = None
        if self._closed:
            return False
        if self._limit is not None and self._returned >= self._limit:
            return False
        if not self._started:
            self._started = True
            for stream in self._streams:
                await self._fill(stream)
                self._push_head(stream)
        elif self._pending_refill is not None:
            stream = self._streams[self._pending_refill]
            self._pending_refill = None
            await self._fill(stream)
            self._push_head(stream)
        if not self._heap:
            return False
        _, index = heapq.heappop(self._heap)
        stream = self._streams[index]
        self._current = stream.page.popleft()
        self._returned += 1
        if stream.page:
            self._push_head(stream)
        elif not stream.exhausted:
            self._pending_refill = index
        return True

    def current(self) -> CaptureEvent:
        """Return the event selected by the last successful advance()."""
        if self._current is None:
            raise CursorStateError("merge cursor has no current event; call advance() first")
        return self._current

    async def close(self) -> None:
        self._closed = True
        self._current = None
        self._heap.clear()
        self._pending_refill = None
        for stream in self._streams:
            stream.page.clear()
            stream.exhausted = True

    async def __aenter__(self) -> MergeCursor:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _fill(self, stream: _Stream) -> None:
        if stream.exhausted or stream.page:
            return
        rows = await stream.source.fetch_page(stream.last_key, self._page_size)
        if not rows:
            stream.exhausted = True
            return
        previous = stream.last_key
        for row in rows:
            if previous is not None and row.key <= previous:
                raise CursorStateError(
                    f"source {stream.source.name!r} returned key {row.key} after {previous}; "
                    "pages must be strictly ascending"
                )
            previous = row.key
        stream.page.extend(rows)
        stream.last_key = rows[-1].key
        if len(rows) < self._page_size:
            stream.exhausted = True
        logger.debug("fetched %d capture rows from %s", len(rows), stream.source.name)

    def _push_head(self, stream: _Stream) -> None:
        if stream.page:
            heapq.heappush(self._heap, (stream.page[0].key, stream.index))
