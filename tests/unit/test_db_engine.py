"""Unit tests for database URL handling and engine creation."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from triggersearch.db import DATABASE_URL_ENV, create_engine, normalize_url, resolve_url
from triggersearch.exceptions import ConfigurationError


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("postgresql://u:p@localhost/db", "postgresql+asyncpg://u:p@localhost/db"),
        ("postgres://u:p@localhost/db", "postgresql+asyncpg://u:p@localhost/db"),
        ("mysql://u:p@localhost/db", "mysql+aiomysql://u:p@localhost/db"),
        ("sqlite:///tmp/x.db", "sqlite+aiosqlite:///tmp/x.db"),
        ("postgresql+psycopg://u@h/db", "postgresql+psycopg://u@h/db"),
        ("  sqlite:///x.db  ", "sqlite+aiosqlite:///x.db"),
    ],
)
def test_normalize_url(url: str, expected: str) -> None:
    assert normalize_url(url) == expected


@given(st.text(max_size=24).filter(lambda s: "://" not in s))
def test_property_url_without_scheme_is_rejected(text: str) -> None:
    """Property: anything without 'scheme://' is a configuration error."""
    with pytest.raises(ConfigurationError):
        normalize_url(text)


def test_unsupported_dialect_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        normalize_url("oracle://u@h/db")


def test_resolve_url_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(DATABASE_URL_ENV, "sqlite:///env.db")
    assert resolve_url(None) == "sqlite+aiosqlite:///env.db"
    assert resolve_url("sqlite:///arg.db") == "sqlite+aiosqlite:///arg.db"


def test_resolve_url_missing() -> None:
    with pytest.raises(ConfigurationError, match=DATABASE_URL_ENV):
        resolve_url("  ")


@pytest.mark.asyncio
async def test_create_sqlite_engine(tmp_path) -> None:
    pytest.importorskip("aiosqlite")
    engine = create_engine(f"sqlite:///{tmp_path / 'x.db'}")
    try:
        assert engine.dialect.name == "sqlite"
    finally:
        await engine.dispose()
