"""Unit tests for the merge cursor over paged capture-table streams."""

from __future__ import annotations

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.support import ListPageSource, Place, Sorcerer, event
from triggersearch.events import EventType, MergeCursor
from triggersearch.exceptions import CursorStateError


async def _drain(cursor: MergeCursor) -> list:
    out = []
    async with cursor:
        while await cursor.advance():
            out.append(cursor.current())
    return out


@pytest.mark.asyncio
async def test_two_tables_page_size_one_scenario() -> None:
    a = ListPageSource(
        "a",
        [event(Place, 10, EventType.INSERT, 1, "a"), event(Place, 11, EventType.INSERT, 2, "a")],
    )
    b = ListPageSource("b", [event(Place, 10, EventType.UPDATE, 1, "b")])

    events = await _drain(MergeCursor([a, b], page_size=1))

    assert len(events) == 3
    from_a = [e.key for e in events if e.capture_table == "a"]
    assert from_a == [1, 2]
    # equal keys: the stream registered first wins
    assert [(e.capture_table, e.key) for e in events] == [("a", 1), ("b", 1), ("a", 2)]


@pytest.mark.asyncio
async def test_current_before_advance_fails() -> None:
    cursor = MergeCursor([ListPageSource("a", [event(Place, 1, EventType.INSERT, 1)])])
    with pytest.raises(CursorStateError):
        cursor.current()


@pytest.mark.asyncio
async def test_current_after_exhaustion_fails() -> None:
    cursor = MergeCursor([ListPageSource("a", [event(Place, 1, EventType.INSERT, 1)])])
    assert await cursor.advance()
    assert cursor.current().entity_id == 1
    assert not await cursor.advance()
    with pytest.raises(CursorStateError):
        cursor.current()


@pytest.mark.asyncio
async def test_empty_sources_yield_nothing() -> None:
    cursor = MergeCursor([ListPageSource("a", []), ListPageSource("b", [])])
    assert not await cursor.advance()
    assert cursor.returned == 0


@pytest.mark.asyncio
async def test_pages_are_fetched_lazily() -> None:
    source = ListPageSource("a", [event(Place, i, EventType.INSERT, i) for i in range(1, 6)])
    cursor = MergeCursor([source], page_size=2)

    assert await cursor.advance()
    assert source.fetches == [(None, 2)]
    assert await cursor.advance()
    assert source.fetches == [(None, 2)]
    assert await cursor.advance()
    assert source.fetches == [(None, 2), (2, 2)]
    await cursor.close()


@pytest.mark.asyncio
async def test_short_page_marks_stream_exhausted() -> None:
    source = ListPageSource("a", [event(Place, i, EventType.INSERT, i) for i in range(1, 4)])
    events = await _drain(MergeCursor([source], page_size=2))

    assert [e.key for e in events] == [1, 2, 3]
    # the second page came back short, so no third query was issued
    assert source.fetches == [(None, 2), (2, 2)]


@pytest.mark.asyncio
async def test_limit_caps_returned_events() -> None:
    a = ListPageSource("a", [event(Place, i, EventType.INSERT, i * 2, "a") for i in range(1, 6)])
    b = ListPageSource("b", [event(Sorcerer, i, EventType.INSERT, i * 2 + 1, "b") for i in range(1, 6)])
    cursor = MergeCursor([a, b], page_size=50, limit=4)

    events = await _drain(cursor)

    assert [e.key for e in events] == [2, 3, 4, 5]
    assert cursor.returned == 4


@pytest.mark.asyncio
async def test_after_skips_consumed_keys() -> None:
    a = ListPageSource("a", [event(Place, i, EventType.INSERT, i, "a") for i in range(1, 5)])
    b = ListPageSource("b", [event(Sorcerer, i, EventType.INSERT, i, "b") for i in range(1, 3)])

    events = await _drain(MergeCursor([a, b], after={"a": 3}))

    assert [(e.capture_table, e.key) for e in events] == [("b", 1), ("b", 2), ("a", 4)]


@pytest.mark.asyncio
async def test_descending_page_is_rejected() -> None:
    class _Broken:
        name = "broken"

        async def fetch_page(self, after_key, limit):
            return [event(Place, 1, EventType.INSERT, 5), event(Place, 2, EventType.INSERT, 4)]

    cursor = MergeCursor([_Broken()])
    with pytest.raises(CursorStateError, match="ascending"):
        await cursor.advance()


@pytest.mark.asyncio
async def test_closed_cursor_returns_nothing() -> None:
    cursor = MergeCursor([ListPageSource("a", [event(Place, 1, EventType.INSERT, 1)])])
    await cursor.close()
    assert not await cursor.advance()


def test_invalid_arguments() -> None:
    with pytest.raises(ValueError):
        MergeCursor([], page_size=0)
    with pytest.raises(ValueError):
        MergeCursor([], limit=-1)


_keys = st.lists(st.integers(min_value=1, max_value=500), max_size=25, unique=True)


@settings(max_examples=60, deadline=None)
@given(st.lists(_keys, min_size=1, max_size=4), st.integers(min_value=1, max_value=7))
def test_property_merge_preserves_every_row_and_per_table_order(tables: list[list[int]], page_size: int) -> None:
    """Property: every row comes out once, each table's keys stay ascending, output is key-sorted."""
    sources = [
        ListPageSource(f"t{i}", [event(Place, k, EventType.UPDATE, k, f"t{i}") for k in keys])
        for i, keys in enumerate(tables)
    ]

    events = asyncio.run(_drain(MergeCursor(sources, page_size=page_size)))

    assert len(events) == sum(len(keys) for keys in tables)
    for i, keys in enumerate(tables):
        assert [e.key for e in events if e.capture_table == f"t{i}"] == sorted(keys)
    assert [e.key for e in events] == sorted(e.key for e in events)
    for source in sources:
        assert all(limit == page_size for _, limit in source.fetches)
