"""Chat hub: the single owner of all chat state.

Every inbound Socket.IO event ends up in one of the coroutines below. Each
one runs under the hub lock, so no two events interleave their mutations
or their broadcasts even though emitting awaits the transport.
"""
import asyncio
import logging
from typing import Any, Callable, Optional, Set

from utils.event_utils import EventType
from utils.message_utils import ErrorCode, create_error_message, create_system_message, now_ms

from .broadcaster import PresenceBroadcaster
from .gateway import MessageGateway, anonymous_label
from .general_room import GeneralRoomController
from .membership import MembershipBridge
from .outcome import DropReason, Outcome
from .registry import ConnectionRegistry
from .requests import (
    ChatMessageRequest, JoinRequest, PayloadError,
    RoomCreateRequest, RoomMessageRequest, RoomRef
)
from .rooms import RoomDirectory
from .settings import ChatSettings
from .transport import Transport

logger = logging.getLogger(__name__)


class ChatHub:
    def __init__(
        self,
        transport: Transport,
        settings: Optional[ChatSettings] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.transport = transport
        self.settings = settings or ChatSettings()
        self.clock = clock
        self._lock = asyncio.Lock()
        self._connections: Set[str] = set()

        self.registry = ConnectionRegistry()
        self.membership = MembershipBridge(transport)
        self.directory = RoomDirectory(self.registry, self.membership)
        self.general = GeneralRoomController(
            self.settings.general_room_id,
            self.registry,
            self.directory,
            self.membership,
            clock,
        )
        self.broadcaster = PresenceBroadcaster(self.registry, self.directory, transport)
        self.gateway = MessageGateway(
            self.settings,
            self.registry,
            self.directory,
            self.membership,
            self.general,
            self.broadcaster,
            transport,
            clock,
        )

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def _notify_all(self, text: str) -> None:
        await self.transport.emit(EventType.SYSTEM.value, create_system_message(text, self.clock()))

    # --- Connection lifecycle ---

    async def connect(self, sid: str) -> Outcome:
        async with self._lock:
            self._connections.add(sid)
        logger.info(f"Client connected: {sid}")
        return Outcome.ok()

    async def join(self, sid: str, payload: Any) -> Outcome:
        """Register sid under a display name and resynchronize everyone."""
        request = JoinRequest.from_payload(payload)
        name = request.username or anonymous_label(sid)

        async with self._lock:
            if self.settings.enforce_unique_names:
                owner = self.registry.resolve_connection(name)
                if owner is not None and owner != sid:
                    logger.info(f"Rejected join of {sid} as '{name}': name in use by {owner}")
                    await self.transport.emit(
                        EventType.SYSTEM_ERROR.value,
                        create_error_message(ErrorCode.NAME_TAKEN),
                        to=sid
                    )
                    return Outcome.dropped(DropReason.NAME_TAKEN, name)

            self.registry.register(sid, name)
            logger.info(f"{sid} joined as '{name}'")
            await self._notify_all(f"{name} connected")

            await self.general.reconcile()
            await self.general.admit(sid)

            await self.broadcaster.broadcast()
            await self.transport.emit(
                EventType.SYSTEM_INFO.value,
                create_system_message(f"Welcome {name}", self.clock()),
                to=sid
            )
        return Outcome.ok(name)

    async def logout(self, sid: str) -> Outcome:
        """Unregister sid and force its transport connection closed."""
        async with self._lock:
            name = self.registry.unregister(sid)
            await self._notify_all(f"{name or 'Someone'} logged out")
            logger.info(f"{sid} logged out ({name})")
        # The transport runs the disconnect handler inline, which needs the lock
        await self.transport.disconnect(sid)
        return Outcome.ok(name)

    async def disconnect(self, sid: str) -> Outcome:
        """Clean up after a connection that is gone."""
        async with self._lock:
            self._connections.discard(sid)
            name = self.registry.unregister(sid)
            if name:
                await self._notify_all(f"{name} disconnected")

            self.gateway.rate_limiter.forget(sid)
            self.membership.forget(sid)
            for room_id in self.directory.ids():
                if self.membership.count(room_id) == 0:
                    self.directory.delete(room_id)

            await self.general.reconcile()
            await self.broadcaster.broadcast()
        logger.info(f"Client disconnected: {sid}" + (f" ({name})" if name else ""))
        return Outcome.ok(name)

    async def ping(self, sid: str, ts: Any) -> Outcome:
        await self.transport.emit(EventType.PONG_RTT.value, ts, to=sid)
        return Outcome.ok()

    # --- Chat traffic ---

    async def send_message(self, sid: str, payload: Any) -> Outcome:
        """Legacy global channel."""
        async with self._lock:
            if not self.gateway.admit(sid):
                return Outcome.dropped(DropReason.RATE_LIMITED)
            try:
                request = ChatMessageRequest.from_payload(payload)
            except PayloadError as e:
                logger.debug(f"Dropped mensaje from {sid}: {e}")
                return Outcome.dropped(DropReason.VALIDATION_FAILED, str(e))
            outcome = await self.gateway.send_global(sid, request)
        if not outcome:
            logger.debug(f"Dropped mensaje from {sid}: {outcome.detail}")
        return outcome

    async def send_room_message(self, sid: str, payload: Any) -> Outcome:
        try:
            request = RoomMessageRequest.from_payload(payload)
        except PayloadError as e:
            logger.debug(f"Dropped room:message from {sid}: {e}")
            return Outcome.dropped(DropReason.VALIDATION_FAILED, str(e))
        async with self._lock:
            return await self.gateway.send_room(sid, request)

    async def create_room(self, sid: str, payload: Any) -> Outcome:
        try:
            request = RoomCreateRequest.from_payload(payload)
        except PayloadError as e:
            logger.debug(f"Dropped room:create from {sid}: {e}")
            return Outcome.dropped(DropReason.VALIDATION_FAILED, str(e))
        async with self._lock:
            return await self.gateway.create_room(sid, request)

    async def join_room(self, sid: str, payload: Any) -> Outcome:
        try:
            ref = RoomRef.from_payload(payload)
        except PayloadError as e:
            logger.debug(f"Dropped room:join from {sid}: {e}")
            return Outcome.dropped(DropReason.VALIDATION_FAILED, str(e))
        async with self._lock:
            return await self.gateway.join_room(sid, ref)

    async def leave_room(self, sid: str, payload: Any) -> Outcome:
        try:
            ref = RoomRef.from_payload(payload)
        except PayloadError as e:
            logger.debug(f"Dropped room:leave from {sid}: {e}")
            return Outcome.dropped(DropReason.VALIDATION_FAILED, str(e))
        async with self._lock:
            return await self.gateway.leave_room(sid, ref)
