"""
Concrete WebSocket Endpoint Implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import WebSocket

from rates_hub.components.core.context import ConnectionContext
from rates_hub.components.endpoints.base import WebSocketEndpointBase

if TYPE_CHECKING:
    from rates_hub.connection_manager import ConnectionManager


class RatesEndpoint(WebSocketEndpointBase):
    """
    WebSocket endpoint for rate subscribers.

    Features:
    - No authentication; every client receives every RATES_UPDATE
    - Heartbeat (ping/pong) support
    """

    ENDPOINT_NAME = "/ws/rates"

    def __init__(
        self,
        websocket: WebSocket,
        manager: "ConnectionManager",
        **kwargs,
    ):
        super().__init__(
            websocket=websocket,
            manager=manager,
            endpoint_name=self.ENDPOINT_NAME,
            **kwargs,
        )

    def create_context(self) -> ConnectionContext:
        return ConnectionContext.from_websocket(self.websocket, self.endpoint_name)
