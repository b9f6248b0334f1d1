import enum

class EventType(enum.Enum):
    """
    Enumerates the events emitted by the chat server.
    Events signify that something *has happened*. Payloads provide context.
    """
    # Global notices
    SYSTEM = "system" # Payload: {"text": str, "ts": int}
    SYSTEM_INFO = "system:info" # Payload: {"text": str, "ts": int}, personal
    SYSTEM_ERROR = "system:error" # Payload: {"code": str}, personal

    # Legacy global channel
    CHAT_MESSAGE = "mensaje" # Payload: {"user": str, "text": str, "ts": int|float}

    # Directory snapshots
    PRESENCE_UPDATE = "presence:update" # Payload: [str]
    ROOMS_UPDATE = "rooms:update" # Payload: [{"roomId", "name", "owner", "participants", "createdAt"}]

    # Rooms
    ROOM_INVITED = "room:invited" # Payload: {"roomId", "name", "owner", "ts"}
    ROOM_CREATED = "room:created" # Payload: {"roomId", "name"}
    ROOM_MESSAGE = "room:message" # Payload: {"roomId", "user", "text", "ts"}

    # Latency probe
    PONG_RTT = "pong_rtt" # Payload: whatever the client sent with ping_rtt
