"""Utilities for creating and handling standardized Socket.IO messages."""

import enum
import html
import time
from typing import Any, Dict, Union

SYSTEM_SENDER = "system"

# Define the inbound requests clients send to the server
class MessageType(enum.Enum):
    """
    Enumerates the types of messages clients send via Socket.IO.
    Messages are requests for action; the server answers with EventType events.
    """
    JOIN = "join" # {"username": str} or a bare string (legacy clients)
    CHAT_MESSAGE = "mensaje" # {"user"?: str, "text": str, "ts"?: number}
    ROOM_CREATE = "room:create" # {"name"?: str, "inviteUser"?: str}
    ROOM_JOIN = "room:join" # {"roomId": str}
    ROOM_LEAVE = "room:leave" # {"roomId": str}
    ROOM_MESSAGE = "room:message" # {"roomId": str, "text": str}
    LOGOUT = "logout"
    PING_RTT = "ping_rtt" # any timestamp, echoed back


class ErrorCode(enum.Enum):
    """Machine-readable codes carried by system:error."""
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    NAME_TAKEN = "NAME_TAKEN"


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)

def escape_html(text: str) -> str:
    """Escape &, < and > so the text cannot inject markup."""
    return html.escape(text, quote=False)

def cap_text(text: str, max_length: int) -> str:
    """Truncate text to at most max_length characters."""
    return text[:max_length]

### Message Utility functions

def create_system_message(text: str, ts: int) -> Dict[str, Any]:
    """Creates a system notice (global or personal)."""
    return {"text": text, "ts": ts}

def create_chat_message(user: str, text: str, ts: Union[int, float]) -> Dict[str, Any]:
    """Creates a legacy global channel message."""
    return {"user": user, "text": text, "ts": ts}

def create_room_message(room_id: str, user: str, text: str, ts: int) -> Dict[str, Any]:
    """Creates a room-scoped chat message."""
    return {"roomId": room_id, "user": user, "text": text, "ts": ts}

def create_error_message(code: ErrorCode) -> Dict[str, Any]:
    """Creates a scoped error signal."""
    return {"code": code.value}

def create_invite_message(room_id: str, name: str, owner: str, ts: int) -> Dict[str, Any]:
    """Creates the notification sent to a user invited into a room."""
    return {"roomId": room_id, "name": name, "owner": owner, "ts": ts}

def create_room_created_message(room_id: str, name: str) -> Dict[str, Any]:
    """Creates the acknowledgment sent to a room's creator."""
    return {"roomId": room_id, "name": name}
