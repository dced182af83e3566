"""
Connection Broadcaster.

Delivers one payload to every member of a registry snapshot.

Each per-handle send only enqueues on the handle's outbox, so the dispatch
loop never waits on a peer. A failure for one handle is logged and counted
and delivery continues with the rest of the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, TYPE_CHECKING

from shared.config.logging import get_logger

if TYPE_CHECKING:
    from rates_hub.components.connection.registry import ConnectionRegistry
    from rates_hub.components.events.types import BroadcastPayload
    from rates_hub.components.metrics.collector import MetricsCollector

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class BroadcastResult:
    """
    Aggregate outcome of one broadcast pass.

    attempted == sent + skipped + failed, and equals the snapshot size.
    """

    attempted: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0


class ConnectionBroadcaster:
    """
    Broadcast dispatcher.

    Responsibilities:
    - Stamp the payload with the dispatch time and serialize it once
    - Take a fresh registry snapshot per broadcast
    - Skip handles that are not OPEN
    - Isolate per-handle failures from the rest of the pass

    Fire-and-forget: there is no acknowledgement and no retry. Because the
    loop never awaits between sends, sequential broadcasts from one caller
    reach every peer's outbox in call order.
    """

    def __init__(
        self,
        registry: "ConnectionRegistry",
        metrics: "MetricsCollector",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            registry: Shared connection registry
            metrics: Collects broadcast metrics
            clock: Source of dispatch timestamps
        """
        self._registry = registry
        self._metrics = metrics
        self._clock = clock

    async def broadcast(self, payload: "BroadcastPayload") -> BroadcastResult:
        """
        Send a payload to all connected clients.

        Never raises because of an individual connection.

        Returns:
            Aggregate counts for the pass.
        """
        message = payload.stamped(self._clock()).to_json()
        handles = await self._registry.snapshot()

        if not handles:
            self._metrics.record_broadcast(sent=0, failed=0, skipped=0)
            return BroadcastResult()

        sent = 0
        skipped = 0
        failed = 0

        for handle in handles:
            # Stale handle: its own lifecycle removes it
            if not handle.is_open:
                skipped += 1
                continue
            try:
                handle.send(message)
                sent += 1
            except Exception as e:
                failed += 1
                logger.debug(
                    "Broadcast send failed",
                    handle=repr(handle),
                    error_type=type(e).__name__,
                    error=str(e),
                )

        self._metrics.record_broadcast(sent=sent, failed=failed, skipped=skipped)
        if failed > 0:
            logger.debug(
                "Broadcast completed with failures",
                payload_type=payload.type,
                sent=sent,
                failed=failed,
                skipped=skipped,
                total=len(handles),
            )

        return BroadcastResult(
            attempted=len(handles),
            sent=sent,
            skipped=skipped,
            failed=failed,
        )
