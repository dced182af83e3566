"""
Connection Lifecycle Management.

Bridges transport-level connect, close and error notifications to registry
operations. Each accepted connection produces exactly one handle, and each
handle leaves the registry exactly once no matter how many close/error
notifications its transport emits.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shared.config.logging import get_logger
from rates_hub.components.connection.handle import ConnectionHandle
from rates_hub.components.core.constants import WSCloseCode, WSConstants

if TYPE_CHECKING:
    from fastapi import WebSocket
    from rates_hub.components.connection.registry import ConnectionRegistry
    from rates_hub.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


class ConnectionLifecycle:
    """
    Manages the lifecycle of WebSocket connections.

    Responsibilities:
    - Accept new connections within the global capacity limit
    - Register a handle for every accepted connection
    - Deregister on close or error, idempotently
    - Close the transport of peers whose handle failed (slow or broken)
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        max_total_connections: int = WSConstants.MAX_TOTAL_CONNECTIONS,
        send_queue_size: int = WSConstants.SEND_QUEUE_SIZE,
    ) -> None:
        """
        Args:
            registry: Shared connection registry
            metrics: Collects connection metrics
            max_total_connections: Global connection limit
            send_queue_size: Outbox capacity for each new handle
        """
        self._registry = registry
        self._metrics = metrics
        self._max_total_connections = max_total_connections
        self._send_queue_size = send_queue_size
        self._accepting = 0
        self._shutdown = False

    @property
    def total_connections(self) -> int:
        """Current number of registered connections."""
        return len(self._registry)

    @property
    def max_total_connections(self) -> int:
        return self._max_total_connections

    @property
    def is_shutdown(self) -> bool:
        """Whether shutdown has been initiated."""
        return self._shutdown

    def set_shutdown(self, value: bool) -> None:
        self._shutdown = value

    async def wait_for_pending_accepts(self, poll_interval: float = 0.01) -> None:
        """
        Wait until no handshake is between its capacity reservation and
        registration.

        Bounded by the accept timeout of the slowest pending handshake.
        """
        while self._accepting:
            await asyncio.sleep(poll_interval)

    async def connect(
        self,
        websocket: "WebSocket",
        timeout: float = WSConstants.WS_ACCEPT_TIMEOUT,
    ) -> ConnectionHandle:
        """
        Accept a WebSocket connection and register it.

        Args:
            websocket: The WebSocket to accept.
            timeout: Timeout for completing the handshake.

        Returns:
            The registered handle.

        Raises:
            ConnectionError: If the hub is shutting down, at capacity, or the
                handshake fails.
        """
        if self._shutdown:
            self._metrics.increment_connection_rejected_shutdown()
            raise ConnectionError("Server is shutting down")

        # Check and reserve with no await in between so concurrent
        # handshakes cannot overshoot the limit
        if len(self._registry) + self._accepting >= self._max_total_connections:
            self._metrics.increment_connection_rejected_limit()
            raise ConnectionError(
                f"Server at capacity ({self._max_total_connections} connections)"
            )
        self._accepting += 1

        try:
            try:
                await asyncio.wait_for(websocket.accept(), timeout=timeout)
            except asyncio.TimeoutError:
                self._metrics.increment_accept_failures()
                raise ConnectionError("WebSocket accept timed out")
            except Exception as e:
                self._metrics.increment_accept_failures()
                raise ConnectionError(f"WebSocket accept failed: {e}")

            # Shutdown may have started while the handshake was in flight
            if self._shutdown:
                self._metrics.increment_connection_rejected_shutdown()
                await self._close_transport(
                    websocket, WSCloseCode.GOING_AWAY, "Server shutdown"
                )
                raise ConnectionError("Server is shutting down")

            handle = ConnectionHandle(
                websocket,
                max_pending=self._send_queue_size,
                on_failure=self._on_handle_failure,
            )
            handle.start()
            await self._registry.add(handle)
        finally:
            self._accepting -= 1
        self._metrics.increment_connections_accepted()

        logger.info(
            "New client connected",
            client=_describe_client(websocket),
            total_connections=len(self._registry),
        )
        return handle

    async def disconnect(self, handle: ConnectionHandle, reason: str = "client_disconnect") -> bool:
        """
        Remove a connection from the registry and stop its writer.

        Safe to call repeatedly; only the first call for a handle logs.

        Returns:
            True if this call removed the handle.
        """
        removed = await self._registry.remove(handle)
        await handle.close()

        if removed:
            self._metrics.increment_connections_closed()
            logger.info(
                "Client disconnected",
                reason=reason,
                total_connections=len(self._registry),
            )
        return removed

    async def handle_error(self, handle: ConnectionHandle, error: BaseException) -> bool:
        """
        Record a transport error and deregister the connection.

        The error is only logged; it is never surfaced to other peers.
        """
        self._metrics.increment_connection_errors()
        logger.warning(
            "WebSocket error",
            error_type=type(error).__name__,
            error=str(error),
        )
        return await self.disconnect(handle, reason="error")

    async def _on_handle_failure(self, handle: ConnectionHandle, error: Exception) -> None:
        """
        Called when a handle overflowed or its writer failed.

        Deregisters it, then closes the transport so the peer's receive loop
        terminates instead of lingering without broadcasts.
        """
        await self.handle_error(handle, error)
        await self._close_transport(
            handle.websocket, WSCloseCode.SERVER_OVERLOADED, "Delivery failed"
        )

    @staticmethod
    async def _close_transport(websocket: "WebSocket", code: int, reason: str) -> None:
        try:
            await websocket.close(code=code, reason=reason)
        except Exception as e:
            logger.debug("Failed to close connection", code=code, error=str(e))


def _describe_client(websocket: "WebSocket") -> str:
    client = getattr(websocket, "client", None)
    if client is None:
        return "unknown"
    return f"{client.host}:{client.port}"
