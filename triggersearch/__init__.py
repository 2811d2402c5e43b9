"""triggersearch: keep a search index in sync with database changes captured by triggers."""

from triggersearch.app import SearchSync, create_search_sync
from triggersearch.config import TriggerSearchConfig, load_config
from triggersearch.events import (
    CaptureEvent,
    CapturePoller,
    EventModelBuilder,
    EventModelInfo,
    EventType,
    IdColumn,
    MergeCursor,
    WatchedEntity,
)
from triggersearch.exceptions import (
    ConfigurationError,
    CursorStateError,
    DispatchError,
    SearchSyncError,
)
from triggersearch.index import (
    FieldType,
    IdField,
    IndexMapping,
    IndexMappings,
    IndexUpdater,
    InMemoryIndexBackend,
)
from triggersearch.triggers import TriggerCreationStrategy, TriggerSQLSource

__version__ = "0.1.0"

__all__ = [
    "CaptureEvent",
    "CapturePoller",
    "ConfigurationError",
    "CursorStateError",
    "DispatchError",
    "EventModelBuilder",
    "EventModelInfo",
    "EventType",
    "FieldType",
    "IdColumn",
    "IdField",
    "InMemoryIndexBackend",
    "IndexMapping",
    "IndexMappings",
    "IndexUpdater",
    "MergeCursor",
    "SearchSync",
    "SearchSyncError",
    "TriggerCreationStrategy",
    "TriggerSQLSource",
    "TriggerSearchConfig",
    "WatchedEntity",
    "create_search_sync",
    "load_config",
]
