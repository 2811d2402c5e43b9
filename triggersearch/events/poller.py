"""Capture poller: drain capture tables, dispatch, then consume.

Delivery is at-least-once. Cursors only move, and capture rows are only
deleted, after the consumer accepted the whole batch. A failed tick leaves
everything in place, so the same rows come back on the next tick and the
consumer has to tolerate seeing an event twice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncEngine

from triggersearch.events.merge import DEFAULT_PAGE_SIZE, MergeCursor, SQLCapturePageSource, capture_table_clause
from triggersearch.events.model import EventModelInfo
from triggersearch.events.scheduler import AsyncioScheduler, ScheduledHandle, Scheduler
from triggersearch.events.types import CaptureEvent, EventType
from triggersearch.exceptions import DispatchError

logger = logging.getLogger(__name__)

BatchConsumer = Callable[[list[CaptureEvent]], Awaitable[None]]


class CapturePoller:
    """Recurring, non-overlapping task moving capture rows to a batch consumer."""

    def __init__(
        self,
        *,
        engine: AsyncEngine,
        infos: Sequence[EventModelInfo],
        consumer: BatchConsumer,
        scheduler: Scheduler | None = None,
        delay_seconds: float = 0.5,
        initial_delay_seconds: float | None = None,
        batch_size: int = 5,
        page_size: int = DEFAULT_PAGE_SIZE,
        name: str = "default",
    ) -> None:
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size < 1:
            raise ValueError("batch_size must be a positive integer")
        if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
            raise ValueError("page_size must be a positive integer")
        if delay_seconds <= 0:
            raise ValueError("delay_seconds must be > 0")
        self._engine = engine
        self._infos = list(infos)
        self._by_table = {info.capture_table: info for info in self._infos}
        self._consumer = consumer
        self._scheduler = scheduler or AsyncioScheduler(name=f"triggersearch-{name}")
        self._delay = float(delay_seconds)
        self._initial_delay = self._delay if initial_delay_seconds is None else float(initial_delay_seconds)
        self._batch_size = batch_size
        self._page_size = page_size
        self._name = name
        self._last_keys: dict[str, int] = {}
        self._lock = asyncio.Lock()
        self._handle: ScheduledHandle | None = None
        self._stopping = False

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._stopping

    @property
    def last_consumed_keys(self) -> dict[str, int]:
        return dict(self._last_keys)

    def start(self) -> None:
        """Schedule the recurring tick on the scheduler."""
        if self.running:
            return
        self._stopping = False
        self._handle = self._scheduler.schedule_with_fixed_delay(
            self._scheduled_tick, self._initial_delay, self._delay
        )
        logger.info(
            "capture poller %s started: %d tables, delay=%.3fs, batch_size=%d",
            self._name,
            len(self._infos),
            self._delay,
            self._batch_size,
        )

    async def stop(self, timeout: float | None = None) -> bool:
        """Stop scheduling ticks and wait for the one in flight.

        Waits without bound unless ``timeout`` is given. Returns False if
        the in-flight tick was still running when the timeout expired.
        """
        handle = self._handle
        if handle is None:
            return True
        self._stopping = True
        handle.cancel()
        finished = await handle.wait(timeout)
        if finished:
            self._handle = None
            logger.info("capture poller %s stopped", self._name)
        else:
            logger.warning("capture poller %s: tick still running after %.1fs", self._name, timeout or 0.0)
        return finished

    async def _scheduled_tick(self) -> None:
        if self._stopping:
            return
        try:
            await self.tick()
        except Exception:
            logger.exception("capture poller %s: tick aborted, capture rows left for the next tick", self._name)

    async def tick(self) -> int:
        """Run one drain/dispatch/consume cycle; return the number of events dispatched.

        Raises DispatchError when the consumer fails; cursors are untouched then.
        """
        async with self._lock:
            events, consumed = await self._collect()
            if events:
                try:
                    await self._consumer(events)
                except Exception as exc:
                    raise DispatchError(len(events), str(exc) or type(exc).__name__) from exc
            if consumed:
                await self._mark_consumed(consumed)
            if events:
                logger.debug("capture poller %s dispatched %d events", self._name, len(events))
            return len(events)

    async def _collect(self) -> tuple[list[CaptureEvent], dict[str, list[int]]]:
        events: list[CaptureEvent] = []
        consumed: dict[str, list[int]] = {}
        async with self._engine.connect() as conn:
            sources = [SQLCapturePageSource(info, conn) for info in self._infos]
            cursor = MergeCursor(
                sources,
                page_size=self._page_size,
                after=self._last_keys,
                limit=self._batch_size,
            )
            async with cursor:
                while await cursor.advance():
                    event = cursor.current()
                    consumed.setdefault(event.capture_table, []).append(event.key)
                    if event.event_type is EventType.UNKNOWN:
                        logger.warning(
                            "skipping capture row %s in %s: unknown event type",
                            event.key,
                            event.capture_table,
                        )
                        continue
                    events.append(event)
        return events, consumed

    async def _mark_consumed(self, consumed: dict[str, list[int]]) -> None:
        for capture_table, keys in consumed.items():
            highest = max(keys)
            self._last_keys[capture_table] = max(highest, self._last_keys.get(capture_table, highest))
        try:
            async with self._engine.begin() as conn:
                for capture_table, keys in consumed.items():
                    info = self._by_table[capture_table]
                    clause = capture_table_clause(info)
                    await conn.execute(delete(clause).where(clause.c[info.key_column].in_(keys)))
        except Exception:
            # rows stay behind the in-memory cursor; they are redelivered after a restart
            logger.exception("capture poller %s: could not delete consumed capture rows", self._name)


async def count_pending(engine: AsyncEngine, infos: Sequence[EventModelInfo]) -> dict[str, int]:
    """Return the number of capture rows waiting in each capture table."""
    counts: dict[str, int] = {}
    async with engine.connect() as conn:
        for info in infos:
            clause = capture_table_clause(info)
            result = await conn.execute(select(func.count()).select_from(clause))
            counts[info.capture_table] = int(result.scalar() or 0)
    return counts
