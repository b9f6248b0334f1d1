"""Test configuration and fixtures for the roomchat tests."""
import os
import sys
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

import pytest
import pytest_asyncio
import socketio
from aiohttp import web
from aiohttp.test_utils import unused_port

# Add application root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.hub import ChatHub
from core.settings import ChatSettings
from utils.config_loader import ConfigManager


@dataclass(frozen=True)
class Emission:
    sid: str
    event: str
    data: Any


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeTransport:
    """Records every emission per recipient and tracks transport-level rooms."""

    def __init__(self):
        self.sids: Set[str] = set()
        self.rooms: Dict[str, Set[str]] = defaultdict(set)
        self.sent: List[Emission] = []
        self.disconnected: List[str] = []
        self.on_disconnect = None

    def add(self, sid: str) -> None:
        self.sids.add(sid)

    def remove(self, sid: str) -> None:
        self.sids.discard(sid)
        for members in self.rooms.values():
            members.discard(sid)

    async def emit(self, event: str, data: Any, to: Optional[str] = None) -> None:
        if to is None:
            targets = sorted(self.sids)
        elif to in self.rooms:
            targets = sorted(self.rooms[to])
        elif to in self.sids:
            targets = [to]
        else:
            targets = []
        for sid in targets:
            self.sent.append(Emission(sid, event, data))

    async def enter_room(self, sid: str, room: str) -> None:
        self.rooms[room].add(sid)

    async def leave_room(self, sid: str, room: str) -> None:
        self.rooms[room].discard(sid)

    async def disconnect(self, sid: str) -> None:
        self.disconnected.append(sid)
        self.remove(sid)
        if self.on_disconnect is not None:
            await self.on_disconnect(sid)

    def received(self, sid: str, event: Optional[str] = None) -> List[Any]:
        return [e.data for e in self.sent if e.sid == sid and (event is None or e.event == event)]

    def last(self, sid: str, event: str) -> Any:
        payloads = self.received(sid, event)
        assert payloads, f"{sid} never received {event}"
        return payloads[-1]

    def clear(self) -> None:
        self.sent.clear()


class ChatHarness:
    """A ChatHub wired to a fake transport and clock."""

    def __init__(self, settings: Optional[ChatSettings] = None):
        self.clock = FakeClock()
        self.transport = FakeTransport()
        self.hub = ChatHub(self.transport, settings or ChatSettings(), clock=self.clock)
        self.transport.on_disconnect = self.hub.disconnect

    async def connect(self, sid: str, name: Optional[str] = None):
        self.transport.add(sid)
        await self.hub.connect(sid)
        if name is not None:
            await self.hub.join(sid, {"username": name})
            self.clock.advance(1)

    async def drop(self, sid: str):
        """Simulate the client going away on its own."""
        self.transport.remove(sid)
        return await self.hub.disconnect(sid)


@pytest.fixture
def chat():
    """Provide a hub with default settings."""
    return ChatHarness()


@pytest.fixture
def make_chat():
    """Provide a factory for hubs with custom settings."""
    def factory(**overrides):
        return ChatHarness(ChatSettings(**overrides))
    return factory


@pytest.fixture
def test_config(tmp_path):
    """Provide test configuration isolated from the repository's config dir."""
    cfg = ConfigManager(config_dir=str(tmp_path), load_env=False)
    cfg.set('server', 'host', '127.0.0.1')
    cfg.set('server', 'port', unused_port())
    cfg.set('server', 'static_dir', str(tmp_path / "static"))
    return cfg


@pytest_asyncio.fixture
async def server_app(test_config):
    """Provide a running test server application."""
    from socketio_server.server import create_app

    app = create_app(test_config)
    runner = web.AppRunner(app)
    await runner.setup()
    try:
        host = test_config.get('server', 'host')
        port = test_config.get('server', 'port')
        site = web.TCPSite(runner, host, port)
        await site.start()
        yield app, f"http://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest_asyncio.fixture
async def client_factory():
    """Provide a factory for Socket.IO test clients, disconnected on teardown."""
    clients = []

    def factory():
        client = socketio.AsyncClient(logger=False, engineio_logger=False)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        if client.connected:
            await client.disconnect()
