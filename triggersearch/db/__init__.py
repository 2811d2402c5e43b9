"""Database layer: engine creation and sessions."""

from triggersearch.db.engine import DATABASE_URL_ENV, create_engine, normalize_url, resolve_url
from triggersearch.db.session import create_session_factory, get_session

__all__ = [
    "DATABASE_URL_ENV",
    "create_engine",
    "create_session_factory",
    "get_session",
    "normalize_url",
    "resolve_url",
]
