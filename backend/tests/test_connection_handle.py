"""
Tests for ConnectionHandle.

Tests verify:
- Readiness state follows the handle flags and the transport
- Non-blocking send with per-handle FIFO delivery
- Slow peers overflow their own outbox only
- close() is idempotent and never closes the transport
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from rates_hub.components.connection.handle import (
    ConnectionHandle,
    HandleClosedError,
    HandleState,
    SendBufferFullError,
)


async def open_handle(ws, **kwargs) -> ConnectionHandle:
    await ws.accept()
    handle = ConnectionHandle(ws, **kwargs)
    handle.start()
    return handle


class TestHandleState:
    """Tests for handle readiness."""

    @pytest.mark.asyncio
    async def test_open_after_accept(self, make_ws):
        handle = await open_handle(make_ws())
        assert handle.state is HandleState.OPEN
        assert handle.is_open
        await handle.close()

    @pytest.mark.asyncio
    async def test_not_open_before_accept(self, make_ws):
        handle = ConnectionHandle(make_ws())
        assert handle.state is HandleState.CLOSED

    @pytest.mark.asyncio
    async def test_transport_drop_makes_handle_not_open(self, make_ws):
        ws = make_ws()
        handle = await open_handle(ws)

        ws.drop()

        assert handle.state is HandleState.CLOSED
        with pytest.raises(HandleClosedError):
            handle.send("late")
        await handle.close()

    def test_rejects_empty_outbox(self, make_ws):
        with pytest.raises(ValueError):
            ConnectionHandle(make_ws(), max_pending=0)


class TestHandleSend:
    """Tests for the non-blocking send path."""

    @pytest.mark.asyncio
    async def test_messages_are_delivered_in_send_order(self, make_ws):
        ws = make_ws()
        handle = await open_handle(ws)

        for i in range(20):
            handle.send(f"m{i}")
        assert await handle.flush(timeout=1.0)

        assert ws.sent == [f"m{i}" for i in range(20)]
        assert handle.messages_sent == 20
        await handle.close()

    @pytest.mark.asyncio
    async def test_send_returns_before_peer_receives(self, make_ws):
        ws = make_ws(blocked=True)
        handle = await open_handle(ws)

        handle.send("m0")

        assert ws.sent == []
        assert handle.pending == 1
        ws.release()
        assert await handle.flush(timeout=1.0)
        assert ws.sent == ["m0"]
        await handle.close()

    @pytest.mark.asyncio
    async def test_flush_times_out_on_stuck_peer(self, make_ws):
        ws = make_ws(blocked=True)
        handle = await open_handle(ws)
        handle.send("m0")

        assert await handle.flush(timeout=0.05) is False
        await handle.close()

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self, make_ws):
        handle = await open_handle(make_ws())
        await handle.close()

        with pytest.raises(HandleClosedError):
            handle.send("m0")


class TestHandleFailure:
    """Tests for overflow and writer failures."""

    @pytest.mark.asyncio
    async def test_overflow_moves_to_closing_and_notifies_once(self, make_ws):
        ws = make_ws(blocked=True)
        on_failure = AsyncMock()
        handle = await open_handle(ws, max_pending=2, on_failure=on_failure)

        handle.send("m0")
        await asyncio.sleep(0)  # writer takes m0 and blocks on the peer
        handle.send("m1")
        handle.send("m2")

        with pytest.raises(SendBufferFullError):
            handle.send("m3")

        assert handle.state is HandleState.CLOSING
        with pytest.raises(HandleClosedError):
            handle.send("m4")

        await asyncio.sleep(0)
        on_failure.assert_awaited_once()
        failed_handle, error = on_failure.await_args.args
        assert failed_handle is handle
        assert isinstance(error, SendBufferFullError)
        await handle.close()

    @pytest.mark.asyncio
    async def test_writer_failure_moves_to_closing(self, make_ws, eventually):
        ws = make_ws(fail_send=True)
        on_failure = AsyncMock()
        handle = await open_handle(ws, on_failure=on_failure)

        handle.send("m0")
        handle.send("m1")
        assert await handle.flush(timeout=1.0)

        assert handle.state is HandleState.CLOSING
        assert handle.pending == 0
        await eventually(lambda: on_failure.await_count == 1)
        assert isinstance(on_failure.await_args.args[1], RuntimeError)
        await handle.close()


class TestHandleClose:
    """Tests for close()."""

    @pytest.mark.asyncio
    async def test_close_drops_pending_and_keeps_transport_open(self, make_ws):
        ws = make_ws(blocked=True)
        handle = await open_handle(ws)
        handle.send("m0")
        await asyncio.sleep(0)
        handle.send("m1")

        await handle.close()

        assert handle.state is HandleState.CLOSED
        assert handle.pending == 0
        assert ws.sent == []
        assert ws.closed_with is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, make_ws):
        handle = await open_handle(make_ws())
        await handle.close()
        await handle.close()
        assert handle.state is HandleState.CLOSED
