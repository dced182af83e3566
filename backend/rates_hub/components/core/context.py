"""
Connection context for logging.

Carries the metadata logged with every lifecycle event of one WebSocket
connection, and sanitizes client-provided text before it reaches the logs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import WebSocket


# Control characters and Unicode direction overrides
_CONTROL_CHAR_PATTERN = re.compile(
    r'[\x00-\x1f\x7f-\x9f'
    r'\u200b-\u200f'
    r'\u202a-\u202e'
    r'\u2066-\u2069'
    r'\ufeff]'
)


def sanitize_log_data(data: str, max_length: int = 100) -> str:
    """
    Sanitize user-provided data before logging.

    Truncates first so escaping cannot change where the cut falls, then
    strips control characters and escapes backslashes and quotes.

    Args:
        data: Raw user data.
        max_length: Maximum length to include in logs.

    Returns:
        Sanitized, truncated string safe for structured logging.
    """
    was_truncated = len(data) > max_length
    truncated = data[:max_length] if was_truncated else data

    sanitized = _CONTROL_CHAR_PATTERN.sub('', truncated)
    sanitized = sanitized.replace('\\', '\\\\')
    sanitized = sanitized.replace('"', '\\"')

    if was_truncated:
        return sanitized + "..."
    return sanitized


@dataclass(frozen=True)
class ConnectionContext:
    """
    Metadata for one WebSocket connection.

    Usage:
        ctx = ConnectionContext.from_websocket(websocket, "/ws/rates")
        logger.info("Rates connected", **ctx.to_log_dict())
    """

    endpoint: str
    client: str = "unknown"
    origin: str | None = None

    @classmethod
    def from_websocket(cls, websocket: "WebSocket", endpoint: str) -> "ConnectionContext":
        """Create context from a WebSocket connection."""
        client = getattr(websocket, "client", None)
        return cls(
            endpoint=endpoint,
            client=f"{client.host}:{client.port}" if client else "unknown",
            origin=websocket.headers.get("origin"),
        )

    @property
    def identifier(self) -> str:
        return self.client

    def to_log_dict(self, **extra: Any) -> dict[str, Any]:
        """Only includes non-None fields to reduce log noise."""
        result: dict[str, Any] = {"endpoint": self.endpoint, "client": self.client}
        if self.origin is not None:
            result["origin"] = self.origin
        result.update(extra)
        return result
