"""
Metrics Collector for the Rates Hub.

Centralizes counters for connections and broadcasts.
All operations are synchronous and guarded by a threading.Lock so they can
be called from the broadcast hot path and from sync health checks alike.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any


@dataclass
class BroadcastMetrics:
    """Metrics for broadcast operations."""
    total: int = 0
    failed: int = 0  # Broadcasts with at least one failed recipient
    recipients_sent: int = 0
    recipients_failed: int = 0
    recipients_skipped: int = 0


@dataclass
class ConnectionMetrics:
    """Metrics for connection management."""
    accepted: int = 0
    closed: int = 0
    errors: int = 0
    rejected_limit: int = 0
    rejected_shutdown: int = 0
    accept_failures: int = 0


class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector()
        metrics.record_broadcast(sent=3, failed=0, skipped=1)
        stats = metrics.get_snapshot()
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._broadcast = BroadcastMetrics()
        self._connection = ConnectionMetrics()

    # ==========================================================================
    # Broadcast Metrics
    # ==========================================================================

    def record_broadcast(self, sent: int, failed: int, skipped: int) -> None:
        """Record the outcome of one broadcast pass."""
        with self._lock:
            self._broadcast.total += 1
            self._broadcast.recipients_sent += sent
            self._broadcast.recipients_failed += failed
            self._broadcast.recipients_skipped += skipped
            if failed > 0:
                self._broadcast.failed += 1

    # ==========================================================================
    # Connection Metrics
    # ==========================================================================

    def increment_connections_accepted(self) -> None:
        with self._lock:
            self._connection.accepted += 1

    def increment_connections_closed(self) -> None:
        with self._lock:
            self._connection.closed += 1

    def increment_connection_errors(self) -> None:
        with self._lock:
            self._connection.errors += 1

    def increment_connection_rejected_limit(self) -> None:
        """Connection refused because the hub is at capacity."""
        with self._lock:
            self._connection.rejected_limit += 1

    def increment_connection_rejected_shutdown(self) -> None:
        """Connection refused because the hub is shutting down."""
        with self._lock:
            self._connection.rejected_shutdown += 1

    def increment_accept_failures(self) -> None:
        """WebSocket handshake failed or timed out."""
        with self._lock:
            self._connection.accept_failures += 1

    # ==========================================================================
    # Snapshot
    # ==========================================================================

    def get_snapshot(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Metric names follow {category}_{metric}, category plural.
        """
        with self._lock:
            return {
                "broadcasts_total": self._broadcast.total,
                "broadcasts_failed": self._broadcast.failed,
                "broadcasts_sent_recipients": self._broadcast.recipients_sent,
                "broadcasts_failed_recipients": self._broadcast.recipients_failed,
                "broadcasts_skipped_recipients": self._broadcast.recipients_skipped,
                "connections_accepted": self._connection.accepted,
                "connections_closed": self._connection.closed,
                "connections_errors": self._connection.errors,
                "connections_rejected_limit": self._connection.rejected_limit,
                "connections_rejected_shutdown": self._connection.rejected_shutdown,
                "connections_accept_failures": self._connection.accept_failures,
            }
