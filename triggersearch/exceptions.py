"""Exceptions for triggersearch.

Configuration problems are fatal at startup; everything raised while a
poller tick is running is caught by the poller and logged.
"""


class SearchSyncError(Exception):
    """Base exception for search synchronization."""

    pass


class ConfigurationError(SearchSyncError):
    """Raised when mappings, trigger sources or settings are invalid or missing."""

    pass


class CursorStateError(SearchSyncError, RuntimeError):
    """Raised when the merge cursor is read while it has no current row."""

    pass


class DispatchError(SearchSyncError):
    """Raised when a batch of capture events could not be applied to the index."""

    def __init__(self, batch_size: int, message: str) -> None:
        self.batch_size = batch_size
        super().__init__(f"Dispatch of {batch_size} capture events failed: {message}")
