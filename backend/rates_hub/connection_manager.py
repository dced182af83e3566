"""
WebSocket Connection Manager.

Thin orchestrator that composes the hub's components:
- ConnectionRegistry: the set of live connection handles
- ConnectionLifecycle: connect/disconnect/error notifications
- ConnectionBroadcaster: fan-out to a registry snapshot
- RatesPublisher: RATES_UPDATE ingress
- ConnectionStats: statistics aggregation

One instance is created per application and stored on app.state.manager.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Mapping, TYPE_CHECKING

from shared.config.logging import get_logger
from shared.config.settings import settings
from rates_hub.components.connection.registry import ConnectionRegistry
from rates_hub.components.core.constants import WSCloseCode, WSConstants
from rates_hub.components.metrics.collector import MetricsCollector
from rates_hub.core.connection import (
    BroadcastResult,
    ConnectionBroadcaster,
    ConnectionLifecycle,
    ConnectionStats,
    utc_now,
)
from rates_hub.core.ingress import RatesPublisher

if TYPE_CHECKING:
    from fastapi import WebSocket
    from rates_hub.components.connection.handle import ConnectionHandle
    from rates_hub.components.events.types import BroadcastPayload

logger = get_logger(__name__)

__all__ = ["ConnectionManager"]


class ConnectionManager:
    """
    Manages WebSocket connections for real-time rate updates.

    Configuration from settings (overridable per instance):
    - ws_max_total_connections: Global connection limit (default: 1000)
    - ws_send_queue_size: Outbox size per connection (default: 100)
    - ws_accept_timeout: Handshake timeout in seconds (default: 5)
    """

    def __init__(
        self,
        max_total_connections: int | None = None,
        send_queue_size: int | None = None,
        accept_timeout: float | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the connection manager with composed components."""
        self._max_total_connections = (
            max_total_connections
            if max_total_connections is not None
            else settings.ws_max_total_connections
        )
        self._accept_timeout = (
            accept_timeout if accept_timeout is not None else settings.ws_accept_timeout
        )
        queue_size = send_queue_size if send_queue_size is not None else settings.ws_send_queue_size

        # Core components
        self._registry = ConnectionRegistry()
        self._metrics = MetricsCollector()

        self._lifecycle = ConnectionLifecycle(
            registry=self._registry,
            metrics=self._metrics,
            max_total_connections=self._max_total_connections,
            send_queue_size=queue_size,
        )
        self._broadcaster = ConnectionBroadcaster(
            registry=self._registry,
            metrics=self._metrics,
            clock=clock,
        )
        self._publisher = RatesPublisher(self._broadcaster)
        self._stats = ConnectionStats(
            registry=self._registry,
            metrics=self._metrics,
            max_total_connections=self._max_total_connections,
        )

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    @property
    def total_connections(self) -> int:
        """Total number of active connections."""
        return self._lifecycle.total_connections

    # =========================================================================
    # Connection management (delegate to lifecycle)
    # =========================================================================

    async def connect(
        self,
        websocket: "WebSocket",
        timeout: float | None = None,
    ) -> "ConnectionHandle":
        """Accept and register a new WebSocket connection."""
        return await self._lifecycle.connect(
            websocket,
            timeout=self._accept_timeout if timeout is None else timeout,
        )

    async def disconnect(
        self,
        handle: "ConnectionHandle",
        reason: str = "client_disconnect",
    ) -> bool:
        """Remove a connection from the registry. Idempotent."""
        return await self._lifecycle.disconnect(handle, reason=reason)

    async def handle_error(self, handle: "ConnectionHandle", error: BaseException) -> bool:
        """Log a connection error and remove the connection."""
        return await self._lifecycle.handle_error(handle, error)

    # =========================================================================
    # Broadcast methods (delegate to broadcaster / publisher)
    # =========================================================================

    async def broadcast(self, payload: "BroadcastPayload") -> BroadcastResult:
        """Send a payload to all connected clients."""
        return await self._broadcaster.broadcast(payload)

    async def broadcast_rates(self, rates: Mapping[str, Any]) -> BroadcastResult:
        """Send a RATES_UPDATE event to all connected clients."""
        return await self._publisher.publish_rates(rates)

    # =========================================================================
    # Statistics (delegate to stats)
    # =========================================================================

    def get_stats_sync(self) -> dict[str, Any]:
        """Get connection statistics (sync version for health check)."""
        return self._stats.get_stats_sync()

    # =========================================================================
    # Shutdown
    # =========================================================================

    async def shutdown(self, timeout: float = WSConstants.SHUTDOWN_CLOSE_TIMEOUT) -> int:
        """
        Graceful shutdown - close all connections.

        New connections are refused from here on. Each connection gets up to
        `timeout` seconds to flush queued messages and close.

        Returns:
            Number of transports closed cleanly.
        """
        self._lifecycle.set_shutdown(True)
        logger.info("WebSocket manager shutting down...")

        # Handshakes already past the shutdown check register before the snapshot
        await self._lifecycle.wait_for_pending_accepts()
        handles = await self._registry.snapshot()

        async def close_one(handle: "ConnectionHandle") -> bool:
            await handle.flush(timeout=timeout)
            try:
                await asyncio.wait_for(
                    handle.websocket.close(
                        code=WSCloseCode.GOING_AWAY,
                        reason="Server shutdown",
                    ),
                    timeout=timeout,
                )
                return True
            except Exception as e:
                logger.debug("Error closing connection during shutdown", error=str(e))
                return False

        results = await asyncio.gather(
            *[close_one(handle) for handle in handles],
            return_exceptions=True,
        )
        closed = sum(1 for r in results if r is True)

        for handle in handles:
            await self._lifecycle.disconnect(handle, reason="shutdown")

        logger.info("WebSocket shutdown complete", closed=closed, total=len(handles))
        return closed

    def is_shutting_down(self) -> bool:
        """Check if the manager is in shutdown mode."""
        return self._lifecycle.is_shutdown
