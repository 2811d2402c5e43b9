"""Index updater: apply one ordered batch of capture events to the index."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from triggersearch.entity import EntityProvider
from triggersearch.events.types import CaptureEvent, EventType
from triggersearch.index.backend import IndexBackend, IndexTransaction
from triggersearch.index.mapping import IndexMappings

logger = logging.getLogger(__name__)


def collapse_events(events: Sequence[CaptureEvent]) -> dict[tuple[type, Any], EventType]:
    """Reduce a batch to one event type per (entity type, id).

    The last event for an id wins, so a DELETE overrides anything before it.
    An INSERT that follows an earlier event for the same id becomes an
    UPDATE: the index may still hold a document for that id.
    Result order is the order of each id's last event.
    """
    net: dict[tuple[type, Any], EventType] = {}
    for event in events:
        if event.event_type is EventType.UNKNOWN:
            logger.warning(
                "unknown event type for %s id=%r (capture row %s); skipping",
                event.entity_type.__qualname__,
                event.entity_id,
                event.key,
            )
            continue
        previous = net.pop(event.identity, None)
        current = event.event_type
        if current is EventType.INSERT and previous is not None:
            current = EventType.UPDATE
        net[event.identity] = current
    return net


class IndexUpdater:
    """Consume capture-event batches: dedupe, fetch snapshots, mutate the index."""

    def __init__(
        self,
        *,
        mappings: IndexMappings,
        entity_provider: EntityProvider,
        backend: IndexBackend,
    ) -> None:
        mappings.validate()
        self._mappings = mappings
        self._entity_provider = entity_provider
        self._backend = backend

    async def __call__(self, events: list[CaptureEvent]) -> None:
        await self.update_event(events)

    async def update_event(self, events: Sequence[CaptureEvent]) -> None:
        """Apply a batch inside a single index transaction.

        Any exception rolls the index transaction back and propagates, so
        the caller can leave its cursors where they were.
        """
        net = collapse_events(events)
        if not net:
            return
        await self._entity_provider.open()
        try:
            tx = await self._backend.begin()
            try:
                for (entity_type, entity_id), event_type in net.items():
                    await self._apply(tx, entity_type, entity_id, event_type)
                await tx.commit()
            except BaseException:
                await tx.rollback()
                raise
        finally:
            await self._entity_provider.close()

    async def _apply(self, tx: IndexTransaction, entity_type: type, entity_id: Any, event_type: EventType) -> None:
        if not self._mappings.containing(entity_type):
            logger.warning("%s is not part of any index mapping; skipping id=%r", entity_type.__qualname__, entity_id)
            return
        if event_type in (EventType.INSERT, EventType.UPDATE):
            entity = await self._entity_provider.get(entity_type, entity_id)
            if entity is None:
                logger.debug(
                    "%s id=%r no longer exists; applying %s as delete",
                    entity_type.__qualname__,
                    entity_id,
                    event_type.name,
                )
                await self._delete(tx, entity_type, entity_id)
            elif event_type is EventType.INSERT:
                await tx.index(entity)
            else:
                await tx.update(entity)
            return
        await self._delete(tx, entity_type, entity_id)

    async def _delete(self, tx: IndexTransaction, entity_type: type, entity_id: Any) -> None:
        for mapping in self._mappings.containing(entity_type):
            id_field = mapping.id_field_for(entity_type)
            if id_field is None:
                continue
            await tx.delete_by_field(mapping.indexed_type, id_field.name, id_field.index_value(entity_id))
