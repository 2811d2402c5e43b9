"""Change capture: descriptors, merge cursor, poller and scheduling."""

from triggersearch.events.merge import MergeCursor, PageSource, SQLCapturePageSource, capture_table_clause
from triggersearch.events.model import (
    EventModelBuilder,
    EventModelInfo,
    IdColumn,
    WatchedEntity,
    build_event_models,
    resolve_entity_type,
)
from triggersearch.events.poller import BatchConsumer, CapturePoller, count_pending
from triggersearch.events.scheduler import AsyncioScheduler, ScheduledHandle, Scheduler
from triggersearch.events.types import CaptureEvent, EventType

__all__ = [
    "AsyncioScheduler",
    "BatchConsumer",
    "CaptureEvent",
    "CapturePoller",
    "EventModelBuilder",
    "EventModelInfo",
    "EventType",
    "IdColumn",
    "MergeCursor",
    "PageSource",
    "SQLCapturePageSource",
    "ScheduledHandle",
    "Scheduler",
    "WatchedEntity",
    "build_event_models",
    "capture_table_clause",
    "count_pending",
    "resolve_entity_type",
]
