import logging
from typing import List

from utils.event_utils import EventType

from .registry import ConnectionRegistry
from .rooms import RoomDirectory
from .transport import Transport

logger = logging.getLogger(__name__)


class PresenceBroadcaster:
    """Pushes presence and room snapshots to every connection."""

    def __init__(self, registry: ConnectionRegistry, directory: RoomDirectory, transport: Transport) -> None:
        self.registry = registry
        self.directory = directory
        self.transport = transport

    def presence(self) -> List[str]:
        return self.registry.names()

    async def broadcast(self) -> None:
        """Emit one presence:update and one rooms:update to everyone."""
        presence = self.presence()
        rooms = [summary.to_payload() for summary in self.directory.snapshot()]
        logger.debug(f"Broadcasting presence ({len(presence)} users) and rooms ({len(rooms)})")
        await self.transport.emit(EventType.PRESENCE_UPDATE.value, presence)
        await self.transport.emit(EventType.ROOMS_UPDATE.value, rooms)
