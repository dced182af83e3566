"""
Connection Handle.

Wraps one accepted WebSocket with a readiness state and a non-blocking send.

Each handle owns a bounded outbox and a single writer task that drains it in
FIFO order, so a slow peer only ever delays itself. The handle never closes
the transport: the registry and dispatcher hold non-owning references, and
the lifecycle glue decides what happens to the socket.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Awaitable, Callable, TYPE_CHECKING

from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from rates_hub.components.core.constants import WSConstants

if TYPE_CHECKING:
    from fastapi import WebSocket

logger = get_logger(__name__)

FailureCallback = Callable[["ConnectionHandle", Exception], Awaitable[None]]


class HandleState(str, Enum):
    """Readiness of a connection handle."""

    OPEN = "OPEN"
    CLOSING = "CLOSING"
    CLOSED = "CLOSED"


class SendError(ConnectionError):
    """A message could not be queued for a connection."""


class HandleClosedError(SendError):
    """The handle is not OPEN."""


class SendBufferFullError(SendError):
    """The peer is not draining its outbox fast enough."""


def is_ws_connected(ws: "WebSocket") -> bool:
    """
    Check if WebSocket is in connected state before sending.

    Starlette only exposes CONNECTING, CONNECTED and DISCONNECTED, so a
    connection may look connected briefly after a disconnect was initiated.
    """
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ConnectionHandle:
    """
    One live client connection.

    Identity is the handle object itself: two handles wrapping the same
    peer (e.g. a reconnect racing a late close) are independent members.

    State transitions:
        OPEN -> CLOSING   outbox overflow or writer send failure
        * -> CLOSED       close() (at most once), or transport disconnected

    Usage:
        handle = ConnectionHandle(websocket, on_failure=lifecycle.handle_error)
        handle.start()
        handle.send('{"type": "RATES_UPDATE", ...}')
        await handle.close()
    """

    def __init__(
        self,
        websocket: "WebSocket",
        max_pending: int = WSConstants.SEND_QUEUE_SIZE,
        on_failure: FailureCallback | None = None,
    ) -> None:
        """
        Args:
            websocket: The accepted WebSocket.
            max_pending: Outbox capacity (messages).
            on_failure: Called once, in its own task, when the handle moves to
                CLOSING because of an overflow or a failed send.
        """
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")

        self._websocket = websocket
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self._on_failure = on_failure
        self._writer: asyncio.Task | None = None
        self._failure_task: asyncio.Task | None = None
        self._closing = False
        self._closed = False
        self._messages_sent = 0

    def __repr__(self) -> str:
        return f"<ConnectionHandle {id(self):#x} state={self.state.value} pending={self.pending}>"

    @property
    def websocket(self) -> "WebSocket":
        return self._websocket

    @property
    def state(self) -> HandleState:
        """Current readiness, combining the handle's own flags with the transport state."""
        if self._closed:
            return HandleState.CLOSED
        if self._closing:
            return HandleState.CLOSING
        if not is_ws_connected(self._websocket):
            return HandleState.CLOSED
        return HandleState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state is HandleState.OPEN

    @property
    def pending(self) -> int:
        """Messages queued but not yet written to the transport."""
        return self._outbox.qsize()

    @property
    def messages_sent(self) -> int:
        return self._messages_sent

    def start(self) -> None:
        """Start the writer task. Must be called from the event loop."""
        if self._writer is not None or self._closed:
            return
        self._writer = asyncio.create_task(
            self._write_loop(),
            name=f"connection_writer_{id(self):x}",
        )

    def send(self, message: str) -> None:
        """
        Queue a complete serialized message for delivery and return immediately.

        Raises:
            HandleClosedError: If the handle is not OPEN.
            SendBufferFullError: If the outbox is full. The handle moves to
                CLOSING and the failure callback is scheduled.
        """
        state = self.state
        if state is not HandleState.OPEN:
            raise HandleClosedError(f"Connection is {state.value}")

        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            error = SendBufferFullError(
                f"Send buffer full ({self._outbox.maxsize} messages pending)"
            )
            self._fail(error)
            raise error from None

    async def flush(self, timeout: float | None = None) -> bool:
        """
        Wait until every queued message has been written or dropped.

        Returns:
            True if the outbox drained, False on timeout.
        """
        try:
            await asyncio.wait_for(self._outbox.join(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self) -> None:
        """
        Mark the handle CLOSED, stop the writer and drop undelivered messages.

        Idempotent. Does not close the underlying transport.
        """
        if self._closed:
            return
        self._closed = True

        writer, self._writer = self._writer, None
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

        self._drop_pending()

    async def _write_loop(self) -> None:
        """Drain the outbox in FIFO order until cancelled or a send fails."""
        while True:
            message = await self._outbox.get()
            try:
                await self._websocket.send_text(message)
                self._messages_sent += 1
            except Exception as e:
                logger.debug("Send failed", handle=repr(self), error=str(e))
                self._fail(e)
                self._drop_pending()
                return
            finally:
                self._outbox.task_done()

    def _fail(self, error: Exception) -> None:
        """Move to CLOSING and notify the owner once."""
        if self._closing or self._closed:
            return
        self._closing = True
        if self._on_failure is not None:
            self._failure_task = asyncio.create_task(
                self._on_failure(self, error),
                name=f"connection_failure_{id(self):x}",
            )

    def _drop_pending(self) -> None:
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._outbox.task_done()
