"""Async engine creation for triggersearch."""

import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from triggersearch.exceptions import ConfigurationError

DATABASE_URL_ENV = "TRIGGERSEARCH_DATABASE_URL"

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "mysql": "mysql+aiomysql",
    "sqlite": "sqlite+aiosqlite",
}


def normalize_url(url: str) -> str:
    """Map plain postgresql://, mysql:// and sqlite:// URLs to their async drivers."""
    u = url.strip()
    scheme, sep, rest = u.partition("://")
    if not sep:
        raise ConfigurationError("Database URL must look like 'dialect[+driver]://...'.")
    if "+" in scheme:
        return u
    driver = _ASYNC_DRIVERS.get(scheme.lower())
    if driver is None:
        raise ConfigurationError(
            "Database URL must be PostgreSQL, MySQL or SQLite, or name an explicit async driver."
        )
    return f"{driver}://{rest}"


def resolve_url(database_url: str | None) -> str:
    """Resolve database URL from argument or environment."""
    if database_url is not None and database_url.strip() != "":
        return normalize_url(database_url)
    url = os.environ.get(DATABASE_URL_ENV)
    if not url or not url.strip():
        raise ConfigurationError(
            f"Database URL not set. Set {DATABASE_URL_ENV} or pass database_url."
        )
    return normalize_url(url)


def create_engine(
    database_url: str | None = None,
    *,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_timeout: float = 30.0,
    pool_recycle: int = 1800,
    pool_pre_ping: bool = True,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async database engine.

    Args:
        database_url: Async SQLAlchemy URL. If None, uses TRIGGERSEARCH_DATABASE_URL.
        pool_size: Connection pool size (ignored for SQLite).
        max_overflow: Extra connections beyond pool_size when busy (ignored for SQLite).
        pool_timeout: Seconds to wait for a connection (ignored for SQLite).
        pool_recycle: Seconds after which connections are recycled.
        pool_pre_ping: Ping connections before use.
        echo: Log SQL (for development).

    Returns:
        Configured AsyncEngine.

    Raises:
        ConfigurationError: URL missing or invalid.
    """
    url = resolve_url(database_url)
    if url.startswith("sqlite"):
        return create_async_engine(url, pool_pre_ping=pool_pre_ping, echo=echo)
    return create_async_engine(
        url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        pool_pre_ping=pool_pre_ping,
        echo=echo,
    )
