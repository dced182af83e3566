"""
Connection Management Module.

Components composed by ConnectionManager:
- lifecycle.py: Connection accept/disconnect/error
- broadcaster.py: Fan-out to a registry snapshot
- stats.py: Statistics aggregation
"""

from rates_hub.core.connection.lifecycle import ConnectionLifecycle
from rates_hub.core.connection.broadcaster import (
    BroadcastResult,
    ConnectionBroadcaster,
    utc_now,
)
from rates_hub.core.connection.stats import ConnectionStats

__all__ = [
    "ConnectionLifecycle",
    "ConnectionBroadcaster",
    "BroadcastResult",
    "ConnectionStats",
    "utc_now",
]
