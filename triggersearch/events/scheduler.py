"""Fixed-delay scheduling of the capture poller task."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

logger = logging.getLogger(__name__)

ScheduledTask = Callable[[], Awaitable[None]]


class ScheduledHandle(Protocol):
    """Handle of a recurring task returned by a Scheduler."""

    def cancel(self) -> None:
        """Stop scheduling new runs; a run in progress is left to finish."""
        ...

    async def wait(self, timeout: float | None = None) -> bool:
        """Wait until no run is in progress and none will start; False on timeout."""
        ...


class Scheduler(Protocol):
    """Host-supplied scheduler. Delays are in seconds."""

    def schedule_with_fixed_delay(
        self,
        task: ScheduledTask,
        initial_delay: float,
        delay: float,
    ) -> ScheduledHandle: ...


class _LoopHandle:
    def __init__(self, task: ScheduledTask, initial_delay: float, delay: float, name: str) -> None:
        self._task = task
        self._initial_delay = initial_delay
        self._delay = delay
        self._stop = asyncio.Event()
        self._runner: asyncio.Task[None] = asyncio.create_task(self._run(), name=name)

    async def _sleep(self, seconds: float) -> None:
        if seconds <= 0:
            await asyncio.sleep(0)
            return
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)

    async def _run(self) -> None:
        await self._sleep(self._initial_delay)
        while not self._stop.is_set():
            try:
                await self._task()
            except Exception:
                # tasks are expected to handle their own failures
                logger.exception("scheduled task raised; continuing with next run")
            await self._sleep(self._delay)

    def cancel(self) -> None:
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    async def wait(self, timeout: float | None = None) -> bool:
        if self._runner.done():
            return True
        done, _ = await asyncio.wait({self._runner}, timeout=timeout)
        return bool(done)


class AsyncioScheduler:
    """Scheduler running each recurring task in one asyncio task.

    The next run starts ``delay`` seconds after the previous one finished,
    so runs of one task never overlap.
    """

    def __init__(self, name: str = "triggersearch") -> None:
        self._name = name

    def schedule_with_fixed_delay(
        self,
        task: ScheduledTask,
        initial_delay: float,
        delay: float,
    ) -> _LoopHandle:
        if initial_delay < 0 or delay < 0:
            raise ValueError("delays must be >= 0")
        return _LoopHandle(task, initial_delay, delay, name=f"{self._name}-poller")
