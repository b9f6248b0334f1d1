"""The transport interface the chat core relies on.

The Socket.IO server provides the real implementation
(socketio_server.transport.SocketIOTransport); tests use a recording fake.
"""
from typing import Any, Optional, Protocol


class Transport(Protocol):
    async def emit(self, event: str, data: Any, to: Optional[str] = None) -> None:
        """Send an event to one sid, one room, or everyone when `to` is None."""
        ...

    async def enter_room(self, sid: str, room: str) -> None:
        ...

    async def leave_room(self, sid: str, room: str) -> None:
        ...

    async def disconnect(self, sid: str) -> None:
        ...
