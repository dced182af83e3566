"""
Heartbeat handling for the Rates Hub.

Clients keep their connection alive by sending "ping" (or {"type":"ping"})
at least once per receive timeout; the hub answers with {"type":"pong"}.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from rates_hub.components.core.constants import MSG_PING_PLAIN, MSG_PING_JSON, MSG_PONG_JSON

if TYPE_CHECKING:
    from rates_hub.components.connection.handle import ConnectionHandle

logger = get_logger(__name__)


def is_heartbeat(data: str) -> bool:
    """Check whether an inbound frame is a ping."""
    return data == MSG_PING_PLAIN or data == MSG_PING_JSON


def handle_heartbeat(handle: "ConnectionHandle", data: str) -> bool:
    """
    Respond to ping messages with pong.

    The pong goes through the handle's outbox so it is ordered with
    broadcasts and never writes to the socket concurrently with the writer.

    Args:
        handle: The connection the frame arrived on.
        data: The received message data.

    Returns:
        True if message was a heartbeat and was handled, False otherwise.
    """
    if not is_heartbeat(data):
        return False

    try:
        handle.send(MSG_PONG_JSON)
    except ConnectionError as e:
        # Connection is going away; its lifecycle handles cleanup
        logger.debug("Could not queue heartbeat response", error=str(e))
    return True
