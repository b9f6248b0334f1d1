"""Tests for the membership bridge."""
import pytest

from core.membership import MembershipBridge

from conftest import FakeTransport

pytestmark = pytest.mark.asyncio


async def test_join_and_leave_are_mirrored_into_the_transport():
    transport = FakeTransport()
    bridge = MembershipBridge(transport)

    await bridge.join("room-1", "s1")
    await bridge.join("room-1", "s2")
    await bridge.join("room-1", "s1")

    assert bridge.members("room-1") == {"s1", "s2"}
    assert transport.rooms["room-1"] == {"s1", "s2"}

    await bridge.leave("room-1", "s1")
    assert bridge.count("room-1") == 1
    assert transport.rooms["room-1"] == {"s2"}


async def test_forget_drops_sid_everywhere_without_transport_calls():
    transport = FakeTransport()
    bridge = MembershipBridge(transport)
    await bridge.join("room-1", "s1")
    await bridge.join("room-2", "s1")
    await bridge.join("room-2", "s2")

    rooms = bridge.forget("s1")

    assert sorted(rooms) == ["room-1", "room-2"]
    assert bridge.count("room-1") == 0
    assert bridge.members("room-2") == {"s2"}
    assert bridge.rooms_of("s1") == []
    # the transport already dropped a disconnected sid on its own
    assert "s1" in transport.rooms["room-1"]
