"""Membership bridge between the room directory and transport-level rooms.

The core keeps its own room id -> sids relation as the source of truth for
who is in a room, and mirrors every change into the transport so room
broadcasts reach exactly those connections.
"""
import logging
from typing import Dict, FrozenSet, List, Set

from .transport import Transport

logger = logging.getLogger(__name__)


class MembershipBridge:
    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._members: Dict[str, Set[str]] = {}

    async def join(self, room_id: str, sid: str) -> None:
        """Add sid to room_id (idempotent)."""
        self._members.setdefault(room_id, set()).add(sid)
        await self.transport.enter_room(sid, room_id)

    async def leave(self, room_id: str, sid: str) -> None:
        """Remove sid from room_id (idempotent)."""
        members = self._members.get(room_id)
        if members is not None:
            members.discard(sid)
            if not members:
                del self._members[room_id]
        await self.transport.leave_room(sid, room_id)

    def forget(self, sid: str) -> List[str]:
        """Drop a disconnected sid everywhere without touching the transport.

        Returns the rooms the sid was in.
        """
        rooms = self.rooms_of(sid)
        for room_id in rooms:
            members = self._members[room_id]
            members.discard(sid)
            if not members:
                del self._members[room_id]
        return rooms

    def members(self, room_id: str) -> FrozenSet[str]:
        return frozenset(self._members.get(room_id, ()))

    def count(self, room_id: str) -> int:
        return len(self._members.get(room_id, ()))

    def rooms_of(self, sid: str) -> List[str]:
        return [room_id for room_id, sids in self._members.items() if sid in sids]
