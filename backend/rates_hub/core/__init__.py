"""
Rates Hub Core Module.

- connection/: Connection lifecycle, broadcasting, stats
- ingress.py: RATES_UPDATE publishing
"""

from rates_hub.core.connection import (
    BroadcastResult,
    ConnectionBroadcaster,
    ConnectionLifecycle,
    ConnectionStats,
)
from rates_hub.core.ingress import RatesPublisher

__all__ = [
    "BroadcastResult",
    "ConnectionBroadcaster",
    "ConnectionLifecycle",
    "ConnectionStats",
    "RatesPublisher",
]
