"""Unit tests for event types and capture-table descriptors."""

from __future__ import annotations

import pytest
from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from tests.support import Place
from triggersearch.events import (
    EventModelBuilder,
    EventType,
    IdColumn,
    WatchedEntity,
    build_event_models,
    resolve_entity_type,
)
from triggersearch.exceptions import ConfigurationError


class _Base(DeclarativeBase):
    pass


class Book(_Base):
    __tablename__ = "book"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(100))


class Edition(_Base):
    __tablename__ = "edition"

    book_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    number: Mapped[int] = mapped_column(Integer, primary_key=True)


def test_event_type_codes_are_negative_and_distinct() -> None:
    codes = [member.value for member in EventType.captured()]
    assert codes == [-3, -2, -1]
    assert EventType.UNKNOWN.value is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (-3, EventType.INSERT),
        (-2, EventType.UPDATE),
        (-1, EventType.DELETE),
        ("-2", EventType.UPDATE),
        (0, EventType.UNKNOWN),
        (7, EventType.UNKNOWN),
        (None, EventType.UNKNOWN),
        ("garbage", EventType.UNKNOWN),
    ],
)
def test_event_type_from_code(raw: object, expected: EventType) -> None:
    assert EventType.from_code(raw) is expected


def test_builder_derives_source_table_from_mapped_class() -> None:
    infos = EventModelBuilder().watch(Book, capture_table="book_updates", ids=[IdColumn("bookfk", "id")]).build()

    assert len(infos) == 1
    info = infos[0]
    assert info.entity_type is Book
    assert info.source_table == "book"
    assert info.key_column == "updateid"
    assert info.event_type_column == "eventcase"
    assert not info.composite_id
    assert info.entity_id_from_row([5]) == 5


def test_composite_id_is_tuple_in_declaration_order() -> None:
    infos = (
        EventModelBuilder()
        .watch(
            Edition,
            capture_table="edition_updates",
            ids=[IdColumn("bookfk", "book_id"), IdColumn("numberfk", "number")],
        )
        .build()
    )
    info = infos[0]
    assert info.composite_id
    assert info.entity_id_from_row([3, 2]) == (3, 2)
    with pytest.raises(ValueError):
        info.entity_id_from_row([3])


def test_unmapped_class_needs_explicit_source_table() -> None:
    with pytest.raises(ConfigurationError, match="source table"):
        EventModelBuilder().watch(Place, capture_table="place_updates", ids=[IdColumn("placefk", "id")]).build()

    infos = (
        EventModelBuilder()
        .watch(Place, capture_table="place_updates", ids=[IdColumn("placefk", "id")], source_table="place")
        .build()
    )
    assert infos[0].source_table == "place"


@pytest.mark.parametrize(
    ("declaration", "message"),
    [
        (WatchedEntity(entity=Book, capture_table="", id_columns=[IdColumn("f", "id")]), "capture table"),
        (WatchedEntity(entity=None, capture_table="t", id_columns=[IdColumn("f", "id")]), "originating entity"),
        (WatchedEntity(entity=Book, capture_table="t"), "id column"),
        (WatchedEntity(entity=Book, capture_table="t", id_columns=[IdColumn("", "id")]), "capture or source"),
        (
            WatchedEntity(entity=Book, capture_table="t", id_columns=[IdColumn("f", "id")], event_type_column=" "),
            "event type column",
        ),
        (
            WatchedEntity(entity=Book, capture_table="t", id_columns=[IdColumn("f", "id")], key_column=None),
            "ordering key",
        ),
    ],
)
def test_incomplete_declarations_are_rejected(declaration: WatchedEntity, message: str) -> None:
    with pytest.raises(ConfigurationError, match=message):
        build_event_models([declaration])


def test_duplicate_capture_table_is_rejected() -> None:
    declaration = WatchedEntity(entity=Book, capture_table="book_updates", id_columns=[IdColumn("f", "id")])
    with pytest.raises(ConfigurationError, match="more than once"):
        build_event_models([declaration, declaration])


def test_same_entity_may_feed_two_capture_tables() -> None:
    infos = build_event_models(
        [
            WatchedEntity(entity=Book, capture_table="book_updates_a", id_columns=[IdColumn("f", "id")]),
            WatchedEntity(entity=Book, capture_table="book_updates_b", id_columns=[IdColumn("f", "id")]),
        ]
    )
    assert [info.capture_table for info in infos] == ["book_updates_a", "book_updates_b"]


def test_resolve_entity_type_from_path() -> None:
    assert resolve_entity_type("tests.support:Place") is Place
    assert resolve_entity_type("tests.support.Place") is Place


@pytest.mark.parametrize("reference", ["nomodule", "tests.support:Missing", "no.such.module:X", "tests.support:event"])
def test_resolve_entity_type_rejects_bad_references(reference: str) -> None:
    with pytest.raises(ConfigurationError):
        resolve_entity_type(reference)
