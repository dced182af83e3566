"""
Connection components.

Per-connection handle, the shared registry and heartbeat handling.
"""

from rates_hub.components.connection.handle import (
    ConnectionHandle,
    HandleState,
    SendError,
    HandleClosedError,
    SendBufferFullError,
    is_ws_connected,
)
from rates_hub.components.connection.registry import ConnectionRegistry
from rates_hub.components.connection.heartbeat import handle_heartbeat, is_heartbeat

__all__ = [
    "ConnectionHandle",
    "HandleState",
    "SendError",
    "HandleClosedError",
    "SendBufferFullError",
    "is_ws_connected",
    "ConnectionRegistry",
    "handle_heartbeat",
    "is_heartbeat",
]
