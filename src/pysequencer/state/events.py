"""Lane identifiers, connection statuses and refresh triggers.

Every push-channel event is reduced to a :class:`RefreshIntent` here, so the
scheduler has a single dispatcher instead of one handler per event name.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any


class Side(StrEnum):
    LEFT = "left"
    RIGHT = "right"


class ConnectionStatus(StrEnum):
    CONNECTING = "connecting"
    READY = "ready"
    SOCKET_CONNECTED = "socket:connected"
    SOCKET_ERROR = "socket:error"
    SOCKET_DISCONNECTED = "socket:disconnected"
    POLLING = "polling"


class RefreshIntent(StrEnum):
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"

    @classmethod
    def for_side(cls, side: Side) -> RefreshIntent:
        return cls.LEFT if Side(side) is Side.LEFT else cls.RIGHT

    @property
    def sides(self) -> tuple[Side, ...]:
        if self is RefreshIntent.LEFT:
            return (Side.LEFT,)
        if self is RefreshIntent.RIGHT:
            return (Side.RIGHT,)
        return (Side.LEFT, Side.RIGHT)


UPDATE_EVENT = "update"

EVENT_INTENTS: Mapping[str, RefreshIntent] = {
    "sequence:left:changed": RefreshIntent.LEFT,
    "sequence:right:changed": RefreshIntent.RIGHT,
    "sequence:changed": RefreshIntent.FULL,
    "sequencing:change": RefreshIntent.FULL,
    "sequence:flush": RefreshIntent.FULL,
    "container:changed": RefreshIntent.FULL,
    "flush": RefreshIntent.FULL,
}

#: Every event name the push channel subscribes to.
CHANNEL_EVENTS: tuple[str, ...] = (*EVENT_INTENTS, UPDATE_EVENT)


def side_from_payload(payload: Any) -> Side | None:
    """Extract a recognized ``side`` from an ``update`` payload."""
    if not isinstance(payload, Mapping):
        return None
    value = payload.get("side")
    if not isinstance(value, str):
        return None
    try:
        return Side(value)
    except ValueError:
        return None


def intent_for_event(event: str, payload: Any = None) -> RefreshIntent | None:
    """Map a channel event to the refresh it should trigger.

    ``update`` carries an optional ``{"side": ...}``; a missing or
    unrecognized side means a full refresh. Unknown events map to ``None``.
    """
    if event == UPDATE_EVENT:
        side = side_from_payload(payload)
        return RefreshIntent.FULL if side is None else RefreshIntent.for_side(side)
    return EVENT_INTENTS.get(event)
