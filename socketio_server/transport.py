"""Socket.IO implementation of the chat core's Transport."""
import logging
from typing import Any, Optional

import socketio

logger = logging.getLogger(__name__)


class SocketIOTransport:
    """Adapts a socketio.AsyncServer to the core.transport.Transport interface."""

    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def emit(self, event: str, data: Any, to: Optional[str] = None) -> None:
        await self.sio.emit(event, data, to=to)

    async def enter_room(self, sid: str, room: str) -> None:
        await self.sio.enter_room(sid, room)

    async def leave_room(self, sid: str, room: str) -> None:
        await self.sio.leave_room(sid, room)

    async def disconnect(self, sid: str) -> None:
        logger.debug(f"Forcing disconnect of {sid}")
        await self.sio.disconnect(sid)
