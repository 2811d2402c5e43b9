"""Event types and capture events shared by the poller and the index updater."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class EventType(Enum):
    """Kind of change recorded by a capture row.

    The integer codes are the values written by the triggers. They are
    negative so they never collide with user-assigned ids or enum values.
    """

    INSERT = -3
    UPDATE = -2
    DELETE = -1
    UNKNOWN = None

    @classmethod
    def from_code(cls, code: Any) -> EventType:
        """Map a raw event-type column value to a member; unrecognized codes map to UNKNOWN."""
        try:
            value = int(code)
        except (TypeError, ValueError):
            return cls.UNKNOWN
        for member in cls.captured():
            if member.value == value:
                return member
        return cls.UNKNOWN

    @classmethod
    def captured(cls) -> tuple[EventType, ...]:
        """Event types that triggers are generated for."""
        return (cls.INSERT, cls.UPDATE, cls.DELETE)


@dataclass(frozen=True, slots=True)
class CaptureEvent:
    """One captured change (a row read from a capture table)."""

    entity_type: type
    entity_id: Any
    event_type: EventType
    key: int
    capture_table: str = ""

    @property
    def identity(self) -> tuple[type, Any]:
        return (self.entity_type, self.entity_id)
