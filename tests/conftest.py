"""
Shared fixtures for the signal relay tests.
"""
import asyncio
import os
import sys

import pytest

# Add the repository root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import ServerConfig
from relay.endpoint import Endpoint
from relay.registry import ConnectionRegistry
from relay_server import SignalRelayServer, create_app


RELAY_ENV_VARS = (
    'HOST',
    'PORT',
    'STATIC_DIR',
    'RELAY_HEARTBEAT',
    'RELAY_MAX_MESSAGE_SIZE',
    'RELAY_SEND_QUEUE_SIZE',
    'RELAY_PREVIEW_LENGTH',
    'LOG_LEVEL',
)


class FakeTransport:
    """Stands in for an aiohttp WebSocketResponse."""

    def __init__(self, fail: bool = False):
        self.closed = False
        self.fail = fail
        self.gate = None
        self.frames = []

    @property
    def sent(self):
        return [data for _, data in self.frames]

    async def send_str(self, data):
        await self._write('text', data)

    async def send_bytes(self, data):
        await self._write('binary', data)

    async def _write(self, kind, data):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ConnectionResetError("Cannot write to closing transport")
        self.frames.append((kind, data))


async def wait_until(predicate, timeout: float = 2.0):
    """Poll until predicate() is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


async def settle(*endpoints):
    """Wait for the writers of the given endpoints to go idle."""
    await asyncio.gather(*(endpoint.drain() for endpoint in endpoints))


@pytest.fixture
def clean_env(monkeypatch):
    for name in RELAY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env):
    return ServerConfig(heartbeat_interval=0)


@pytest.fixture
async def registry():
    registry = ConnectionRegistry()
    yield registry
    await registry.cleanup()


@pytest.fixture
def connect(registry):
    """Create, register and open an endpoint backed by a fake transport."""

    def _connect(name: str = None, fail: bool = False, send_queue_size: int = 256) -> Endpoint:
        endpoint = Endpoint(FakeTransport(fail=fail), remote=name, send_queue_size=send_queue_size)
        registry.register(endpoint)
        endpoint.mark_open()
        return endpoint

    return _connect


@pytest.fixture
def relay_server(config):
    return SignalRelayServer(config)


@pytest.fixture
async def client(aiohttp_client, relay_server):
    return await aiohttp_client(create_app(relay_server))
