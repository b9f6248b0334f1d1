"""Policy for the shared general room.

The general room exists only while at least two users are around. It is
created (and everyone registered is pulled in) once the registered user
count reaches two, and torn down as soon as its live membership drops
below two; a lone remaining member is evicted rather than left behind.
"""
import logging
from typing import Callable

from .membership import MembershipBridge
from .registry import ConnectionRegistry
from .rooms import SYSTEM_OWNER, RoomDirectory, RoomKind, general_room_name

logger = logging.getLogger(__name__)

MIN_GENERAL_POPULATION = 2


class GeneralRoomController:
    def __init__(
        self,
        room_id: str,
        registry: ConnectionRegistry,
        directory: RoomDirectory,
        membership: MembershipBridge,
        clock: Callable[[], int],
    ) -> None:
        self.room_id = room_id
        self.registry = registry
        self.directory = directory
        self.membership = membership
        self.clock = clock

    @property
    def is_active(self) -> bool:
        return self.room_id in self.directory

    async def reconcile(self) -> bool:
        """Bring the general room in line with the population.

        Calling it when nothing needs to change is a no-op. Returns whether
        the room is active afterwards.
        """
        if not self.is_active:
            total = len(self.registry)
            if total >= MIN_GENERAL_POPULATION:
                self.directory.create(
                    self.room_id,
                    general_room_name(total),
                    SYSTEM_OWNER,
                    RoomKind.GENERAL,
                    created_at=self.clock(),
                )
                for sid in self.registry.connections():
                    await self.membership.join(self.room_id, sid)
                logger.info(f"General room opened with {total} users")
            return self.is_active

        if self.membership.count(self.room_id) < MIN_GENERAL_POPULATION:
            self.directory.delete(self.room_id)
            for sid in sorted(self.membership.members(self.room_id)):
                await self.membership.leave(self.room_id, sid)
            logger.info("General room closed: fewer than two participants left")
        return self.is_active

    async def admit(self, sid: str) -> bool:
        """Put a newly registered connection into the general room if it is open."""
        if not self.is_active:
            return False
        await self.membership.join(self.room_id, sid)
        return True
