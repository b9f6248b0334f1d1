"""Core room/presence engine for the roomchat server.

Components:
- ChatHub: owns all state and serializes every inbound event
- ConnectionRegistry: connection <-> display name
- RoomDirectory / MembershipBridge: room metadata and who is in each room
- GeneralRoomController: opens and closes the shared general room
- MessageGateway: global channel, room messages and room lifecycle
- PresenceBroadcaster: presence and room snapshots for every client
"""

from .hub import ChatHub
from .outcome import DropReason, Outcome
from .registry import ConnectionRegistry
from .rooms import Room, RoomDirectory, RoomKind, RoomSummary, dm_room_id
from .settings import ChatSettings

__all__ = [
    'ChatHub',
    'ChatSettings',
    'ConnectionRegistry',
    'DropReason',
    'Outcome',
    'Room',
    'RoomDirectory',
    'RoomKind',
    'RoomSummary',
    'dm_room_id'
]
