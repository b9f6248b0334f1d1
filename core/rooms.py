"""Room directory for the chat hub.

This module holds the authoritative room metadata:
- Room identity (public ids, deterministic direct-message ids)
- Display name, owner, creation time and kind
- The canonical member pair of direct-message rooms
- Point-in-time snapshots for the rooms:update broadcast

Who currently receives a room's messages is not stored here; that lives in
the membership bridge and is read back when a snapshot is taken.
"""
import enum
import logging
import random
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set

from .membership import MembershipBridge
from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)

SYSTEM_OWNER = "system"
PUBLIC_ROOM_PREFIX = "room-"
DM_ROOM_PREFIX = "dm-"
_ID_ALPHABET = string.ascii_lowercase + string.digits


class RoomKind(enum.Enum):
    GENERAL = "general"
    PUBLIC = "public"
    DIRECT = "direct"


def dm_room_id(a: str, b: str) -> str:
    """Deterministic id for the direct-message room of a pair of users.

    The pair is sorted first, so dm_room_id(a, b) == dm_room_id(b, a).
    """
    x, y = sorted((str(a), str(b)))
    return f"{DM_ROOM_PREFIX}{x}#{y}"


def generate_room_id() -> str:
    """Random public room id, e.g. 'room-k3x9qa'."""
    return PUBLIC_ROOM_PREFIX + "".join(random.choices(_ID_ALPHABET, k=6))


def general_room_name(count: int) -> str:
    return f"Chat general (+{count})"


@dataclass
class Room:
    room_id: str
    name: str
    owner: str
    created_at: int
    kind: RoomKind = RoomKind.PUBLIC
    members: Set[str] = field(default_factory=set)

    @property
    def is_general(self) -> bool:
        return self.kind is RoomKind.GENERAL


@dataclass(frozen=True)
class RoomSummary:
    room_id: str
    name: str
    owner: str
    participants: List[str]
    created_at: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "roomId": self.room_id,
            "name": self.name,
            "owner": self.owner,
            "participants": list(self.participants),
            "createdAt": self.created_at,
        }


class RoomDirectory:
    """Maps room ids to Room metadata."""

    def __init__(self, registry: ConnectionRegistry, membership: MembershipBridge) -> None:
        self.registry = registry
        self.membership = membership
        self._rooms: Dict[str, Room] = {}

    def create(
        self,
        room_id: str,
        name: str,
        owner: str,
        kind: RoomKind,
        created_at: int,
        members: Optional[Iterable[str]] = None,
    ) -> Room:
        """Register a room, or return the existing one.

        An existing direct-message room keeps its name and creation time but
        absorbs the given members; any other existing room is left untouched.
        """
        existing = self._rooms.get(room_id)
        if existing is not None:
            if kind is RoomKind.DIRECT:
                existing.kind = RoomKind.DIRECT
                existing.members.update(members or ())
            return existing

        room = Room(
            room_id=room_id,
            name=name,
            owner=owner,
            created_at=created_at,
            kind=kind,
            members=set(members or ()),
        )
        self._rooms[room_id] = room
        logger.info(f"Room created: {room_id} ({kind.value}) by {owner}")
        return room

    def new_public_id(self) -> str:
        """Generate a public room id not already in the directory."""
        room_id = generate_room_id()
        while room_id in self._rooms:
            room_id = generate_room_id()
        return room_id

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def delete(self, room_id: str) -> Optional[Room]:
        room = self._rooms.pop(room_id, None)
        if room is not None:
            logger.info(f"Room deleted: {room_id}")
        return room

    def ids(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def participants(self, room_id: str) -> List[str]:
        """Registered names of the room's current members, sorted."""
        names = []
        for sid in self.membership.members(room_id):
            name = self.registry.resolve_name(sid)
            if name is not None:
                names.append(name)
        return sorted(names)

    def summarize(self, room: Room) -> RoomSummary:
        participants = self.participants(room.room_id)
        # The general room's label tracks its live population
        name = general_room_name(self.membership.count(room.room_id)) if room.is_general else room.name
        return RoomSummary(
            room_id=room.room_id,
            name=name,
            owner=room.owner,
            participants=participants,
            created_at=room.created_at,
        )

    def snapshot(self) -> Iterator[RoomSummary]:
        """Summaries of every room as of now, most recently created first."""
        rooms = sorted(self._rooms.values(), key=lambda r: r.created_at, reverse=True)
        summaries = [self.summarize(room) for room in rooms]
        return iter(summaries)
