"""
Tests for ConnectionManager, RatesPublisher and ConnectionStats.
"""

import asyncio

import pytest

from rates_hub.components.core.constants import WSCloseCode
from rates_hub.core.ingress import RatesPublisher


class TestRatesPublisher:
    """Tests for the rates ingress trigger."""

    @pytest.mark.asyncio
    async def test_publish_rates_broadcasts_rates_update(self, lifecycle, broadcaster, make_ws):
        sockets = [make_ws(), make_ws()]
        handles = [await lifecycle.connect(ws) for ws in sockets]
        publisher = RatesPublisher(broadcaster)

        result = await publisher.publish_rates({"USD": 1.0, "ARS": 870.5})
        for handle in handles:
            await handle.flush(timeout=1.0)

        assert result.sent == 2
        for ws in sockets:
            [message] = ws.messages()
            assert message["type"] == "RATES_UPDATE"
            assert message["data"] == {"USD": 1.0, "ARS": 870.5}

    @pytest.mark.asyncio
    async def test_publish_with_no_clients(self, broadcaster):
        result = await RatesPublisher(broadcaster).publish_rates({"USD": 1.0})
        assert result.attempted == 0
        assert result.sent == 0


class TestConnectionManager:
    """Tests for the composed manager."""

    @pytest.mark.asyncio
    async def test_connect_broadcast_disconnect(self, manager, make_ws):
        ws = make_ws()
        handle = await manager.connect(ws)

        result = await manager.broadcast_rates({"EUR": 0.92})
        await handle.flush(timeout=1.0)
        removed = await manager.disconnect(handle)

        assert result.sent == 1
        assert removed is True
        assert manager.total_connections == 0
        assert ws.messages()[0]["data"] == {"EUR": 0.92}

    @pytest.mark.asyncio
    async def test_handle_error_deregisters(self, manager, make_ws):
        handle = await manager.connect(make_ws())

        await manager.handle_error(handle, RuntimeError("reset"))

        assert manager.total_connections == 0

    @pytest.mark.asyncio
    async def test_stats(self, manager, make_ws):
        handle = await manager.connect(make_ws())
        await manager.broadcast_rates({"USD": 1.0})

        stats = manager.get_stats_sync()

        assert stats["total_connections"] == 1
        assert stats["max_connections"] == 5
        assert stats["utilization_percent"] == 20.0
        assert stats["metrics"]["broadcasts_total"] == 1
        assert stats["metrics"]["connections_accepted"] == 1
        await manager.disconnect(handle)


class TestConnectionManagerShutdown:
    """Tests for graceful shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_closes_every_connection(self, manager, make_ws):
        sockets = [make_ws(), make_ws(), make_ws()]
        for ws in sockets:
            await manager.connect(ws)

        closed = await manager.shutdown(timeout=0.5)

        assert closed == 3
        assert manager.total_connections == 0
        assert manager.is_shutting_down()
        for ws in sockets:
            assert ws.closed_with == (WSCloseCode.GOING_AWAY, "Server shutdown")

    @pytest.mark.asyncio
    async def test_shutdown_flushes_queued_messages(self, manager, make_ws):
        ws = make_ws()
        await manager.connect(ws)

        await manager.broadcast_rates({"USD": 1.0})
        await manager.shutdown(timeout=0.5)

        assert len(ws.sent) == 1

    @pytest.mark.asyncio
    async def test_shutdown_does_not_wait_forever_on_stuck_peer(self, manager, make_ws):
        stuck, healthy = make_ws(blocked=True), make_ws()
        await manager.connect(stuck)
        await manager.connect(healthy)
        await manager.broadcast_rates({"USD": 1.0})

        closed = await manager.shutdown(timeout=0.05)

        assert closed == 2
        assert manager.total_connections == 0
        assert stuck.sent == []
        assert len(healthy.sent) == 1

    @pytest.mark.asyncio
    async def test_handshake_in_flight_during_shutdown_is_closed(self, manager, make_ws):
        ws = make_ws(accept_delay=0.05)
        pending = asyncio.create_task(manager.connect(ws))
        await asyncio.sleep(0)

        closed = await manager.shutdown(timeout=0.5)

        with pytest.raises(ConnectionError):
            await pending
        assert closed == 0
        assert manager.total_connections == 0
        assert ws.closed_with == (WSCloseCode.GOING_AWAY, "Server shutdown")
        assert manager.metrics.get_snapshot()["connections_rejected_shutdown"] == 1

    @pytest.mark.asyncio
    async def test_shutdown_waits_for_pending_accepts(self, lifecycle, make_ws):
        pending = asyncio.create_task(lifecycle.connect(make_ws(accept_delay=0.05)))
        await asyncio.sleep(0)

        await asyncio.wait_for(lifecycle.wait_for_pending_accepts(), timeout=1.0)

        assert pending.done()
        handle = pending.result()
        await lifecycle.disconnect(handle)

    @pytest.mark.asyncio
    async def test_no_connections_after_shutdown(self, manager, make_ws):
        await manager.shutdown()

        with pytest.raises(ConnectionError):
            await manager.connect(make_ws())

        assert manager.metrics.get_snapshot()["connections_rejected_shutdown"] == 1
