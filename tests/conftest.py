"""Test fixtures — in-memory stand-ins for Postgres and the upstream HTTP service.

Learn: Nothing here needs a live database or network:

1. FakePool mimics asyncpg.Pool's ``acquire(timeout=...)`` context manager
   and records every acquisition, the peak number of connections held at
   once, and every statement executed.
2. FakeListenConnection mimics the parts of asyncpg.Connection the listener
   uses (add_listener, termination listeners, close) and lets a test
   "NOTIFY" a payload or drop the connection.
3. Upstream is an httpx.MockTransport handler recording outbound requests.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Callable, Optional

import httpx
import pytest
import pytest_asyncio

from http_port.dispatcher.listener import NotificationListener
from http_port.services.callback_executor import CallbackExecutor
from http_port.services.http_dispatch import HttpDispatcher


# ─── Database doubles ────────────────────────────────────


class FakeConnection:
    def __init__(self, pool: "FakePool"):
        self.pool = pool

    async def execute(self, query: str, *args):
        if self.pool.gate is not None:
            await self.pool.gate.wait()
        if self.pool.delay:
            await asyncio.sleep(self.pool.delay)
        if self.pool.fail_with is not None:
            raise self.pool.fail_with
        self.pool.executed.append((query, args))
        return "SELECT 1"


class FakePool:
    def __init__(self, size: int = 4):
        self.size = size
        self._available = asyncio.Semaphore(size)
        self.acquisitions = 0
        self.active = 0
        self.max_active = 0
        self.executed: list[tuple[str, tuple]] = []
        self.delay = 0.0
        self.gate: Optional[asyncio.Event] = None
        self.fail_with: Optional[BaseException] = None
        self.closed = False

    @asynccontextmanager
    async def acquire(self, timeout: Optional[float] = None):
        await asyncio.wait_for(self._available.acquire(), timeout)
        self.acquisitions += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield FakeConnection(self)
        finally:
            self.active -= 1
            self._available.release()

    async def close(self):
        self.closed = True


class FakeListenConnection:
    def __init__(self):
        self.listeners: dict[str, list[Callable]] = {}
        self.termination_listeners: list[Callable] = []
        self.closed = False

    async def add_listener(self, channel, callback):
        self.listeners.setdefault(channel, []).append(callback)

    async def remove_listener(self, channel, callback):
        self.listeners.get(channel, []).remove(callback)

    def add_termination_listener(self, callback):
        self.termination_listeners.append(callback)

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True

    def notify(self, channel: str, payload: str):
        for callback in list(self.listeners.get(channel, [])):
            callback(self, 4242, channel, payload)

    def terminate(self):
        self.closed = True
        for callback in self.termination_listeners:
            callback(self)


# ─── Upstream HTTP double ────────────────────────────────


class Upstream:
    """Routes by full URL; unknown URLs answer 200 {"ok":true}."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(self, url: str, status: int = 200, content: bytes = b'{"ok":true}'):
        self.routes[url] = lambda request: httpx.Response(status, content=content)

    def fail(self, url: str, exc_type=httpx.ConnectError):
        def _raise(request):
            raise exc_type("connection refused", request=request)
        self.routes[url] = _raise

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(str(request.url))
        if route is None:
            return httpx.Response(200, content=b'{"ok":true}')
        return route(request)


# ─── Fixtures ────────────────────────────────────────────


@pytest.fixture()
def upstream():
    return Upstream()


@pytest_asyncio.fixture()
async def http_client(upstream):
    transport = httpx.MockTransport(upstream.handler)
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture()
def dispatcher(http_client):
    return HttpDispatcher(http_client)


@pytest.fixture()
def pool():
    return FakePool(size=4)


@pytest.fixture()
def executor(pool):
    return CallbackExecutor(pool, capacity=pool.size, acquire_timeout=1.0)


@pytest.fixture()
def listener(dispatcher, executor):
    return NotificationListener(dispatcher, executor, channel="http_port")


@pytest.fixture()
def listen_conn():
    return FakeListenConnection()


@pytest.fixture()
def make_pool():
    return FakePool
