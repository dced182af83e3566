"""Outbound event types."""

from rates_hub.components.events.types import (
    BroadcastPayload,
    EventType,
    VALID_EVENT_TYPES,
    format_timestamp,
)

__all__ = [
    "BroadcastPayload",
    "EventType",
    "VALID_EVENT_TYPES",
    "format_timestamp",
]
