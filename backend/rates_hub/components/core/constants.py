"""
Rates Hub Constants.

Centralized constants with the reasoning behind each value.
"""

from enum import IntEnum
from typing import Final

__all__ = [
    "WSCloseCode",
    "WSConstants",
    "MSG_PING_PLAIN",
    "MSG_PING_JSON",
    "MSG_PONG_JSON",
    "DEFAULT_ALLOWED_ORIGINS",
]


class WSCloseCode(IntEnum):
    """
    WebSocket close codes used by the hub.

    Standard codes (1000-1999) from RFC 6455.
    """

    NORMAL = 1000  # Normal closure
    GOING_AWAY = 1001  # Server shutting down or client navigating away
    MESSAGE_TOO_BIG = 1009  # Message too large to process
    SERVER_ERROR = 1011  # Unexpected server error
    SERVER_OVERLOADED = 1013  # Server overloaded or peer too slow, try again later


class WSConstants:
    """
    Rates hub operational constants.

    These are the defaults used when no setting overrides them. At runtime
    the ConnectionManager reads `shared.config.settings.settings`, which
    takes precedence.
    """

    # ==========================================================================
    # Timeout Constants
    # ==========================================================================

    # WS_ACCEPT_TIMEOUT: 5 seconds
    # Handshake must complete within this window or the connection is rejected.
    WS_ACCEPT_TIMEOUT: Final[float] = 5.0

    # SHUTDOWN_CLOSE_TIMEOUT: 2 seconds
    # Upper bound for closing a single transport during graceful shutdown.
    SHUTDOWN_CLOSE_TIMEOUT: Final[float] = 2.0

    # ==========================================================================
    # Delivery Constants
    # ==========================================================================

    # SEND_QUEUE_SIZE: 100
    # Pending outbound messages per connection. Rate updates are small and
    # infrequent, so a peer 100 messages behind is not keeping up and is
    # disconnected rather than buffered without bound.
    SEND_QUEUE_SIZE: Final[int] = 100

    # MAX_TOTAL_CONNECTIONS: 1000
    MAX_TOTAL_CONNECTIONS: Final[int] = 1000


# Message type constants for heartbeat protocol
MSG_PING_PLAIN: Final[str] = "ping"
MSG_PING_JSON: Final[str] = '{"type":"ping"}'
MSG_PONG_JSON: Final[str] = '{"type":"pong"}'


# Default origins for development (localhost ports)
DEFAULT_ALLOWED_ORIGINS: Final[tuple[str, ...]] = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)
