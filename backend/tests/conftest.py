"""
Pytest configuration and fixtures for rates hub tests.
"""

import asyncio
import json
from typing import Any, Callable

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from starlette.datastructures import Address, Headers
from starlette.websockets import WebSocketState

from rates_hub.components.connection.registry import ConnectionRegistry
from rates_hub.components.metrics.collector import MetricsCollector
from rates_hub.connection_manager import ConnectionManager
from rates_hub.core.connection.broadcaster import ConnectionBroadcaster
from rates_hub.core.connection.lifecycle import ConnectionLifecycle
from rates_hub.main import create_app


_port_counter = iter(range(50000, 60000))


class FakeWebSocket:
    """
    In-memory stand-in for a Starlette WebSocket.

    - Inbound frames (str or bytes) are fed with feed();
      feed(WebSocketDisconnect()) simulates the peer sending a close frame.
    - Outbound text frames are recorded in `sent`.
    - `gate` (when set) blocks send_text until released, to simulate a slow peer.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        fail_send: bool = False,
        fail_accept: bool = False,
        accept_delay: float = 0.0,
        blocked: bool = False,
    ):
        self.client = Address(host, next(_port_counter))
        self.headers = Headers({"origin": "http://localhost:5173"})
        self.client_state = WebSocketState.CONNECTING
        self.application_state = WebSocketState.CONNECTING
        self.fail_send = fail_send
        self.fail_accept = fail_accept
        self.accept_delay = accept_delay
        self.sent: list[str] = []
        self.closed_with: tuple[int, str | None] | None = None
        self.gate: asyncio.Event | None = asyncio.Event() if blocked else None
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def accept(self) -> None:
        if self.accept_delay:
            await asyncio.sleep(self.accept_delay)
        if self.fail_accept:
            raise RuntimeError("handshake failed")
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_send:
            raise RuntimeError("connection reset by peer")
        self.sent.append(data)

    async def receive(self) -> dict[str, Any]:
        item = await self._inbox.get()
        if isinstance(item, WebSocketDisconnect):
            self.client_state = WebSocketState.DISCONNECTED
            return {"type": "websocket.disconnect", "code": item.code, "reason": item.reason}
        if isinstance(item, Exception):
            raise item
        if isinstance(item, bytes):
            return {"type": "websocket.receive", "bytes": item}
        return {"type": "websocket.receive", "text": item}

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = (code, reason)
        self.application_state = WebSocketState.DISCONNECTED

    def feed(self, item: Any) -> None:
        self._inbox.put_nowait(item)

    def drop(self) -> None:
        """Simulate the transport dying without a close frame."""
        self.client_state = WebSocketState.DISCONNECTED

    def release(self) -> None:
        if self.gate is not None:
            self.gate.set()

    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(m) for m in self.sent]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll until predicate() is true, failing the test on timeout."""
    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout=timeout)


@pytest.fixture
def make_ws():
    """Factory for FakeWebSocket instances."""
    return FakeWebSocket


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def lifecycle(registry, metrics):
    return ConnectionLifecycle(
        registry=registry,
        metrics=metrics,
        max_total_connections=5,
        send_queue_size=10,
    )


@pytest.fixture
def broadcaster(registry, metrics):
    return ConnectionBroadcaster(registry=registry, metrics=metrics)


@pytest.fixture
def manager():
    return ConnectionManager(max_total_connections=5, send_queue_size=10, accept_timeout=1.0)


@pytest.fixture
def app(manager):
    return create_app(manager)


@pytest.fixture
def client(app):
    """Test client running the app lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def eventually():
    """The wait_until helper, for tests that need to wait on background tasks."""
    return wait_until
