"""
Rates ingress.

Entry point used by the HTTP layer when new exchange rates are available.
Wraps the rates in a RATES_UPDATE payload and hands it to the broadcaster.
"""

from __future__ import annotations

from typing import Any, Mapping, TYPE_CHECKING

from shared.config.logging import get_logger
from rates_hub.components.events.types import BroadcastPayload

if TYPE_CHECKING:
    from rates_hub.core.connection.broadcaster import BroadcastResult, ConnectionBroadcaster

logger = get_logger(__name__)


class RatesPublisher:
    """
    Publishes rate updates to every connected client.

    The call completes once every live connection has the update queued;
    it does not wait for peers to receive it.
    """

    def __init__(self, broadcaster: "ConnectionBroadcaster") -> None:
        self._broadcaster = broadcaster

    async def publish_rates(self, rates: Mapping[str, Any]) -> "BroadcastResult":
        """
        Broadcast a rates snapshot as a RATES_UPDATE event.

        Args:
            rates: Currency code to rate mapping. Forwarded as the event body.

        Returns:
            Aggregate delivery counts.
        """
        payload = BroadcastPayload.rates_update(dict(rates))
        result = await self._broadcaster.broadcast(payload)

        logger.info(
            "Rates update broadcast",
            currencies=len(rates),
            sent=result.sent,
            skipped=result.skipped,
            failed=result.failed,
        )
        return result
