"""
WebSocket Endpoint Base Class.

Runs one connection from handshake to deregistration: register with the
ConnectionManager, loop on inbound frames, then deliver exactly one close or
error notification to the lifecycle.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from shared.config.logging import get_logger
from shared.config.settings import settings
from rates_hub.components.core.constants import WSCloseCode
from rates_hub.components.core.context import ConnectionContext, sanitize_log_data
from rates_hub.components.connection.heartbeat import handle_heartbeat

if TYPE_CHECKING:
    from rates_hub.components.connection.handle import ConnectionHandle
    from rates_hub.connection_manager import ConnectionManager

logger = get_logger(__name__)


class WebSocketEndpointBase(ABC):
    """
    Base class for WebSocket endpoints.

    Encapsulates common patterns:
    - Connection lifecycle (accept, message loop, disconnect)
    - Message size validation
    - Heartbeat handling

    Subclasses implement:
    - create_context(): Build the ConnectionContext used in logs
    - handle_message(): Optionally, process non-heartbeat text messages
    - handle_binary(): Optionally, process binary frames

    Usage:
        endpoint = RatesEndpoint(websocket, manager)
        await endpoint.run()
    """

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        endpoint_name: str,
        receive_timeout: float | None = None,
        max_message_size: int | None = None,
    ):
        """
        Initialize the endpoint handler.

        Args:
            websocket: The WebSocket connection.
            manager: ConnectionManager instance.
            endpoint_name: Name for logging (e.g., "/ws/rates").
            receive_timeout: Seconds without an inbound frame before closing.
            max_message_size: Largest accepted inbound frame, in characters
                (bytes for binary frames).
        """
        self.websocket = websocket
        self.manager = manager
        self.endpoint_name = endpoint_name
        self.receive_timeout = (
            receive_timeout if receive_timeout is not None else settings.ws_receive_timeout
        )
        self.max_message_size = (
            max_message_size if max_message_size is not None else settings.ws_max_message_size
        )

        self.context: ConnectionContext | None = None
        self.handle: "ConnectionHandle | None" = None

    @abstractmethod
    def create_context(self) -> ConnectionContext:
        """Create the ConnectionContext for this connection."""

    async def handle_message(self, data: str) -> None:
        """
        Handle a non-heartbeat message.

        Default implementation logs and ignores it.
        """
        logger.debug(
            "Unknown message received",
            **self._log_fields(message=sanitize_log_data(data)),
        )

    async def handle_binary(self, data: bytes) -> None:
        """
        Handle a binary frame.

        The hub speaks text only; the default implementation logs and ignores it.
        """
        logger.debug("Binary frame ignored", **self._log_fields(size=len(data)))

    async def run(self) -> None:
        """
        Main entry point - run the WebSocket endpoint.

        Handles the complete lifecycle:
        1. Create context
        2. Register connection
        3. Message loop
        4. Deregister on close or error
        """
        self.context = self.create_context()

        try:
            self.handle = await self.manager.connect(self.websocket)
        except ConnectionError as e:
            await self._reject(str(e))
            return

        reason = "client_disconnect"
        try:
            reason = await self._message_loop()
        except WebSocketDisconnect:
            reason = "client_disconnect"
        except Exception as e:
            reason = "error"
            await self.manager.handle_error(self.handle, e)
            await self._close(WSCloseCode.SERVER_ERROR, "Internal error")
        finally:
            await self.manager.disconnect(self.handle, reason=reason)

    async def _message_loop(self) -> str:
        """
        Main message processing loop.

        Returns:
            The reason the server ended the connection.

        Raises:
            WebSocketDisconnect: When the client goes away.
        """
        while True:
            data = await self._receive_with_timeout()
            if data is None:
                logger.info(
                    "Connection timed out (no messages)",
                    **self._log_fields(timeout=self.receive_timeout),
                )
                await self._close(WSCloseCode.NORMAL, "Connection timeout")
                return "timeout"

            if not await self.validate_message_size(data):
                return "message_too_big"

            if isinstance(data, bytes):
                await self.handle_binary(data)
                continue

            if handle_heartbeat(self.handle, data):
                continue

            await self.handle_message(data)

    async def _receive_with_timeout(self) -> str | bytes | None:
        """
        Receive one text or binary frame with timeout.

        Returns:
            Message data, or None if timeout.

        Raises:
            WebSocketDisconnect: When the client sent a close frame.
        """
        try:
            message = await asyncio.wait_for(
                self.websocket.receive(),
                timeout=self.receive_timeout,
            )
        except asyncio.TimeoutError:
            return None

        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(
                code=message.get("code", WSCloseCode.NORMAL),
                reason=message.get("reason"),
            )
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes") or b""

    async def validate_message_size(self, data: str | bytes) -> bool:
        """
        Validate message size against configured limit.

        Returns:
            True if valid, False if too large (connection closed).
        """
        if len(data) > self.max_message_size:
            logger.warning(
                "Message size exceeded limit",
                **self._log_fields(size=len(data), max_size=self.max_message_size),
            )
            await self._close(WSCloseCode.MESSAGE_TOO_BIG, "Message too large")
            return False
        return True

    async def _reject(self, reason: str) -> None:
        """Log a refused connection and close its transport."""
        logger.warning("Connection rejected", **self._log_fields(reason=reason))
        # The lifecycle already closed handshakes it accepted during shutdown
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        code = (
            WSCloseCode.GOING_AWAY
            if self.manager.is_shutting_down()
            else WSCloseCode.SERVER_OVERLOADED
        )
        await self._close(code, "Connection rejected")

    async def _close(self, code: int, reason: str) -> None:
        try:
            await self.websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.debug("Error closing WebSocket", endpoint=self.endpoint_name, error=str(e))

    def _log_fields(self, **extra: Any) -> dict[str, Any]:
        if self.context is None:
            return {"endpoint": self.endpoint_name, **extra}
        return self.context.to_log_dict(**extra)
