"""End-to-end tests for the Socket.IO server over a real aiohttp site."""
import asyncio
from collections import defaultdict

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import unused_port

from socketio_server.server import HUB_KEY, create_app

pytestmark = pytest.mark.asyncio

# Add timeout constant for socket operations
SOCKET_TIMEOUT = 2.0

EVENTS = (
    "system", "system:info", "system:error", "mensaje", "presence:update",
    "rooms:update", "room:invited", "room:created", "room:message", "pong_rtt",
)


class Recorder:
    """Collects every server event a client receives."""

    def __init__(self, client):
        self.client = client
        self.events = defaultdict(list)
        self.changed = asyncio.Event()
        for name in EVENTS:
            client.on(name, self._handler(name))

    def _handler(self, name):
        def handler(data=None):
            self.events[name].append(data)
            self.changed.set()
        return handler

    async def wait_for(self, event, predicate=lambda data: True):
        async def _wait():
            while True:
                self.changed.clear()
                for data in self.events[event]:
                    if predicate(data):
                        return data
                await self.changed.wait()
        try:
            return await asyncio.wait_for(_wait(), timeout=SOCKET_TIMEOUT)
        except asyncio.TimeoutError:
            pytest.fail(f"Timed out waiting for {event}; received {dict(self.events)}")


@pytest.fixture
def join(server_app, client_factory):
    """Connect a client and join under the given name."""
    _, server_url = server_app

    async def _join(name):
        client = client_factory()
        recorder = Recorder(client)
        await asyncio.wait_for(client.connect(server_url), timeout=SOCKET_TIMEOUT)
        await client.emit("join", {"username": name})
        await recorder.wait_for("system:info", lambda d: d["text"] == f"Welcome {name}")
        return client, recorder
    return _join


async def test_health_endpoint(server_app):
    _, server_url = server_app

    async with aiohttp.ClientSession() as session:
        async with session.get(f"{server_url}/health") as resp:
            assert resp.status == 200
            body = await resp.json()

    assert body["status"] == "ok"
    assert "timestamp" in body


async def test_info_endpoint_counts_clients(server_app, join, test_config):
    _, server_url = server_app
    await join("Ana")

    async with aiohttp.ClientSession() as session:
        async with session.get(f"{server_url}/info") as resp:
            body = await resp.json()

    assert body["port"] == test_config.get('server', 'port')
    assert body["clients"] == 1
    assert isinstance(body["ips"], list)
    assert body["uptime_s"] >= 0


async def test_index_missing_without_static_dir(server_app):
    _, server_url = server_app

    async with aiohttp.ClientSession() as session:
        async with session.get(f"{server_url}/") as resp:
            assert resp.status == 404


async def test_static_frontend_served(test_config, tmp_path):
    static_dir = tmp_path / "public"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>chat</h1>")
    (static_dir / "app.js").write_text("console.log('chat');")
    test_config.set('server', 'static_dir', str(static_dir))
    port = unused_port()

    runner = web.AppRunner(create_app(test_config))
    await runner.setup()
    try:
        await web.TCPSite(runner, "127.0.0.1", port).start()
        async with aiohttp.ClientSession() as session:
            async with session.get(f"http://127.0.0.1:{port}/") as resp:
                assert resp.status == 200
                assert "<h1>chat</h1>" in await resp.text()
            async with session.get(f"http://127.0.0.1:{port}/app.js") as resp:
                assert resp.status == 200
    finally:
        await runner.cleanup()


async def test_join_is_welcomed(join):
    _, ana = await join("Ana")

    assert await ana.wait_for("presence:update", lambda names: names == ["Ana"])
    assert await ana.wait_for("system", lambda d: d["text"] == "Ana connected")


async def test_two_clients_share_general_room(join):
    _, ana = await join("Ana")
    _, beto = await join("Beto")

    def has_general(rooms):
        return any(r["roomId"] == "room-general" and r["participants"] == ["Ana", "Beto"] for r in rooms)

    rooms = await ana.wait_for("rooms:update", has_general)
    await beto.wait_for("rooms:update", has_general)
    assert rooms[0]["name"] == "Chat general (+2)"


async def test_global_message_is_escaped_for_everyone(join):
    ana_client, ana = await join("Ana")
    _, beto = await join("Beto")

    await ana_client.emit("mensaje", {"text": "<b>hi</b>"})

    message = await beto.wait_for("mensaje")
    assert message["user"] == "Ana"
    assert message["text"] == "&lt;b&gt;hi&lt;/b&gt;"


async def test_direct_message_flow(join):
    ana_client, ana = await join("Ana")
    _, beto = await join("Beto")

    await ana_client.emit("room:create", {"inviteUser": "Beto"})

    created = await ana.wait_for("room:created")
    invited = await beto.wait_for("room:invited")
    assert created["roomId"] == invited["roomId"] == "dm-Ana#Beto"
    assert invited["owner"] == "Ana"

    await ana_client.emit("room:message", {"roomId": "dm-Ana#Beto", "text": "psst"})

    message = await beto.wait_for("room:message", lambda d: d["roomId"] == "dm-Ana#Beto")
    assert message["user"] == "Ana"
    assert message["text"] == "psst"


async def test_unknown_room_reports_error(join):
    ana_client, ana = await join("Ana")

    await ana_client.emit("room:join", {"roomId": "room-missing"})

    assert await ana.wait_for("system:error") == {"code": "ROOM_NOT_FOUND"}


async def test_ping_rtt_echo(join):
    ana_client, ana = await join("Ana")

    await ana_client.emit("ping_rtt", 1234567)

    assert await ana.wait_for("pong_rtt") == 1234567


async def test_logout_closes_connection(server_app, join):
    app, _ = server_app
    ana_client, _ = await join("Ana")
    _, beto = await join("Beto")

    await ana_client.emit("logout")

    await beto.wait_for("system", lambda d: d["text"] == "Ana logged out")
    await beto.wait_for("presence:update", lambda names: names == ["Beto"])
    assert app[HUB_KEY].connection_count == 1
