"""Message gateway for the chat hub.

Validates, sanitizes and fans out chat traffic:
- the legacy global channel ('mensaje'), rate limited and HTML-escaped
- room-scoped messages ('room:message')
- room lifecycle requests (create, join, leave), including the
  deterministic direct-message rooms and invite notifications

Requests that fail a precondition are dropped and reported through the
returned Outcome; only a missing room is signalled back to the sender.
"""
import logging
from typing import Callable

from utils.event_utils import EventType
from utils.message_utils import (
    SYSTEM_SENDER, ErrorCode, cap_text, escape_html,
    create_chat_message, create_error_message, create_invite_message,
    create_room_created_message, create_room_message
)

from .broadcaster import PresenceBroadcaster
from .general_room import GeneralRoomController
from .membership import MembershipBridge
from .outcome import DropReason, Outcome
from .rate_limit import RateLimiter
from .registry import ConnectionRegistry
from .requests import ChatMessageRequest, RoomCreateRequest, RoomMessageRequest, RoomRef
from .rooms import RoomDirectory, RoomKind, dm_room_id
from .settings import ChatSettings
from .transport import Transport

logger = logging.getLogger(__name__)


def anonymous_label(sid: str) -> str:
    return f"Anon-{sid[:4]}"


class MessageGateway:
    def __init__(
        self,
        settings: ChatSettings,
        registry: ConnectionRegistry,
        directory: RoomDirectory,
        membership: MembershipBridge,
        general: GeneralRoomController,
        broadcaster: PresenceBroadcaster,
        transport: Transport,
        clock: Callable[[], int],
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.directory = directory
        self.membership = membership
        self.general = general
        self.broadcaster = broadcaster
        self.transport = transport
        self.clock = clock
        self.rate_limiter = RateLimiter(
            clock,
            max_messages=settings.rate_limit_max_messages,
            window_ms=settings.rate_limit_window_ms,
        )

    async def _room_not_found(self, sid: str, room_id: str) -> Outcome:
        await self.transport.emit(
            EventType.SYSTEM_ERROR.value,
            create_error_message(ErrorCode.ROOM_NOT_FOUND),
            to=sid
        )
        return Outcome.dropped(DropReason.ROOM_NOT_FOUND, room_id)

    # --- Global channel ---

    def admit(self, sid: str) -> bool:
        """Charge one global message to sid's rate-limit bucket."""
        allowed = self.rate_limiter.hit(sid)
        if not allowed:
            logger.debug(f"Rate limit exceeded for {sid}")
        return allowed

    async def send_global(self, sid: str, request: ChatMessageRequest) -> Outcome:
        """Validate and broadcast a legacy global message to every connection."""
        max_length = self.settings.max_message_length
        trimmed = request.text.strip()
        if not trimmed:
            return Outcome.dropped(DropReason.VALIDATION_FAILED, "empty text")
        if len(trimmed) > max_length:
            return Outcome.dropped(DropReason.VALIDATION_FAILED, f"text longer than {max_length}")

        label = cap_text(request.user or self.registry.resolve_name(sid) or "", self.settings.max_user_length)
        user = escape_html(label or anonymous_label(sid))
        text = escape_html(cap_text(request.text, max_length))
        ts = request.ts if request.ts is not None else self.clock()

        await self.transport.emit(EventType.CHAT_MESSAGE.value, create_chat_message(user, text, ts))
        return Outcome.ok()

    # --- Rooms ---

    async def send_room(self, sid: str, request: RoomMessageRequest) -> Outcome:
        """Fan a message out to the members of one room."""
        user = self.registry.resolve_name(sid)
        if user is None:
            return Outcome.dropped(DropReason.UNREGISTERED_SENDER)
        if request.room_id not in self.directory:
            return await self._room_not_found(sid, request.room_id)

        text = cap_text(request.text.strip(), self.settings.max_message_length)
        if not text:
            return Outcome.dropped(DropReason.VALIDATION_FAILED, "empty text")
        if self.settings.escape_room_messages:
            text = escape_html(text)

        await self.transport.emit(
            EventType.ROOM_MESSAGE.value,
            create_room_message(request.room_id, user, text, self.clock()),
            to=request.room_id
        )
        return Outcome.ok()

    async def create_room(self, sid: str, request: RoomCreateRequest) -> Outcome:
        """Create a public room, or open (or reopen) a direct-message room."""
        owner = self.registry.resolve_name(sid)
        if owner is None:
            return Outcome.dropped(DropReason.UNREGISTERED_SENDER)

        invitee = request.invite_user
        invitee_sid = self.registry.resolve_connection(invitee) if invitee else None

        if invitee_sid is not None:
            room = self.directory.create(
                dm_room_id(owner, invitee),
                f"{owner} & {invitee}",
                owner,
                RoomKind.DIRECT,
                created_at=self.clock(),
                members=(owner, invitee),
            )
        else:
            name = (request.name or "").strip() or f"{owner}'s room"
            room = self.directory.create(
                self.directory.new_public_id(),
                cap_text(name, self.settings.max_message_length),
                owner,
                RoomKind.PUBLIC,
                created_at=self.clock(),
            )

        await self.membership.join(room.room_id, sid)

        if invitee_sid is not None:
            await self.transport.emit(
                EventType.ROOM_INVITED.value,
                create_invite_message(room.room_id, room.name, owner, self.clock()),
                to=invitee_sid
            )
            # Joined silently so unread messages accrue before the invitee opens the room
            await self.membership.join(room.room_id, invitee_sid)
            logger.info(f"{owner} invited {invitee} to {room.room_id}")

        await self.broadcaster.broadcast()
        await self.transport.emit(
            EventType.ROOM_CREATED.value,
            create_room_created_message(room.room_id, room.name),
            to=sid
        )
        return Outcome.ok(room.room_id)

    async def join_room(self, sid: str, ref: RoomRef) -> Outcome:
        user = self.registry.resolve_name(sid)
        if user is None:
            return Outcome.dropped(DropReason.UNREGISTERED_SENDER)
        if ref.room_id not in self.directory:
            return await self._room_not_found(sid, ref.room_id)

        await self.membership.join(ref.room_id, sid)
        await self.transport.emit(
            EventType.ROOM_MESSAGE.value,
            create_room_message(ref.room_id, SYSTEM_SENDER, f"{user} joined the room.", self.clock()),
            to=ref.room_id
        )
        await self.broadcaster.broadcast()
        return Outcome.ok(ref.room_id)

    async def leave_room(self, sid: str, ref: RoomRef) -> Outcome:
        user = self.registry.resolve_name(sid)
        if user is None:
            return Outcome.dropped(DropReason.UNREGISTERED_SENDER)
        if ref.room_id not in self.directory:
            return Outcome.dropped(DropReason.ROOM_NOT_FOUND, ref.room_id)

        await self.membership.leave(ref.room_id, sid)
        await self.transport.emit(
            EventType.ROOM_MESSAGE.value,
            create_room_message(ref.room_id, SYSTEM_SENDER, f"{user} left the room.", self.clock()),
            to=ref.room_id
        )

        if self.membership.count(ref.room_id) == 0:
            self.directory.delete(ref.room_id)
        if ref.room_id == self.general.room_id:
            await self.general.reconcile()

        await self.broadcaster.broadcast()
        return Outcome.ok(ref.room_id)
