"""
WebSocket endpoint components.

Base class and concrete endpoint handlers.
"""

from rates_hub.components.endpoints.base import WebSocketEndpointBase
from rates_hub.components.endpoints.handlers import RatesEndpoint

__all__ = [
    "WebSocketEndpointBase",
    "RatesEndpoint",
]
