"""
Connection Statistics.

Aggregates statistics from the registry, the lifecycle and the metrics
collector for the health endpoint.
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from rates_hub.components.connection.registry import ConnectionRegistry
    from rates_hub.components.metrics.collector import MetricsCollector


class ConnectionStats:
    """
    Aggregates connection statistics from components.

    Sync only: everything it reads is lock-free or guarded by a threading
    lock, so it can back a health check without touching the event loop.
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        max_total_connections: int,
    ) -> None:
        """
        Args:
            registry: Shared connection registry
            metrics: Collects connection and broadcast metrics
            max_total_connections: Maximum allowed connections
        """
        self._registry = registry
        self._metrics = metrics
        self._max_total_connections = max_total_connections

    def get_stats_sync(self) -> dict[str, Any]:
        """Get connection statistics (sync version for health check)."""
        total = len(self._registry)

        return {
            "total_connections": total,
            "max_connections": self._max_total_connections,
            "utilization_percent": round(
                total / max(1, self._max_total_connections) * 100, 1
            ),
            "metrics": self._metrics.get_snapshot(),
        }
