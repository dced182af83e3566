"""
Event Value Objects for the Rates Hub.

Outbound messages are built from immutable BroadcastPayload objects. The
payload body is opaque to the hub: it is produced by the caller of the
ingress trigger and copied verbatim into the envelope.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Self


class EventType(str, Enum):
    """Event types pushed to connected clients."""

    RATES_UPDATE = "RATES_UPDATE"


# Set for O(1) lookup
VALID_EVENT_TYPES: frozenset[str] = frozenset(e.value for e in EventType)


def format_timestamp(at: datetime) -> str:
    """Format an instant as ISO 8601 UTC with millisecond precision and a Z suffix."""
    if at.tzinfo is None:
        at = at.replace(tzinfo=timezone.utc)
    return at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class BroadcastPayload:
    """
    Immutable value object for one broadcast.

    The timestamp is left unset at creation and assigned by the dispatcher
    through stamped(), so it reflects dispatch time rather than creation time.

    Attributes:
        type: Event type tag (e.g. "RATES_UPDATE").
        data: Opaque body, deep-copied on construction.
        timestamp: Dispatch instant, None until stamped.
    """

    type: str
    data: Any
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        if isinstance(self.type, EventType):
            object.__setattr__(self, "type", self.type.value)
        if not isinstance(self.type, str) or not self.type:
            raise ValueError("Broadcast payload type must be a non-empty string")
        # Later mutation of the caller's object must not leak into the envelope
        object.__setattr__(self, "data", copy.deepcopy(self.data))

    @classmethod
    def rates_update(cls, rates: Any) -> Self:
        """Build a RATES_UPDATE payload."""
        return cls(type=EventType.RATES_UPDATE.value, data=rates)

    @property
    def is_stamped(self) -> bool:
        return self.timestamp is not None

    def stamped(self, at: datetime) -> Self:
        """Return a copy of this payload carrying the given dispatch time."""
        return replace(self, timestamp=at)

    def to_dict(self) -> dict[str, Any]:
        """
        Build the wire envelope.

        Raises:
            ValueError: If the payload has not been stamped yet.
        """
        if self.timestamp is None:
            raise ValueError("Broadcast payload must be stamped before serialization")
        return {
            "type": self.type,
            "data": copy.deepcopy(self.data),
            "timestamp": format_timestamp(self.timestamp),
        }

    def to_json(self) -> str:
        """Serialize the wire envelope to a JSON text frame."""
        return json.dumps(self.to_dict(), default=str)
