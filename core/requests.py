"""Typed requests built from raw Socket.IO payloads.

Clients send loosely shaped JSON (the join event even accepts a bare
string). Everything is normalized here, once, so the rest of the core
never branches on payload shape.
"""
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union


class PayloadError(ValueError):
    """Raised when an inbound payload cannot be normalized."""


def _require_mapping(payload: Any, event: str) -> Mapping:
    if not isinstance(payload, Mapping):
        raise PayloadError(f"{event} payload must be an object, got {type(payload).__name__}")
    return payload


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _finite_number(value: Any) -> Optional[Union[int, float]]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


@dataclass(frozen=True)
class JoinRequest:
    username: str

    @classmethod
    def from_payload(cls, payload: Any) -> "JoinRequest":
        # Legacy clients send the bare name; anything unusable becomes ""
        if isinstance(payload, str):
            return cls(payload.strip())
        if isinstance(payload, Mapping) and isinstance(payload.get('username'), str):
            return cls(payload['username'].strip())
        return cls("")


@dataclass(frozen=True)
class ChatMessageRequest:
    text: str
    user: Optional[str] = None
    ts: Optional[Union[int, float]] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatMessageRequest":
        data = _require_mapping(payload, "mensaje")
        text = data.get('text')
        if not isinstance(text, str):
            raise PayloadError("mensaje.text must be a string")
        user = data.get('user')
        if user and not isinstance(user, str):
            raise PayloadError("mensaje.user must be a string")
        return cls(text=text, user=_optional_str(user) or None, ts=_finite_number(data.get('ts')))


@dataclass(frozen=True)
class RoomCreateRequest:
    name: Optional[str] = None
    invite_user: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "RoomCreateRequest":
        if payload is None:
            return cls()
        data = _require_mapping(payload, "room:create")
        return cls(
            name=_optional_str(data.get('name')) or None,
            invite_user=_optional_str(data.get('inviteUser')) or None,
        )


@dataclass(frozen=True)
class RoomRef:
    room_id: str

    @classmethod
    def from_payload(cls, payload: Any) -> "RoomRef":
        data = _require_mapping(payload, "room")
        # A missing or non-string id names no room; the gateway reports it as not found
        return cls(_optional_str(data.get('roomId')) or "")


@dataclass(frozen=True)
class RoomMessageRequest:
    room_id: str
    text: str

    @classmethod
    def from_payload(cls, payload: Any) -> "RoomMessageRequest":
        ref = RoomRef.from_payload(payload)
        text = payload.get('text')
        if not isinstance(text, str):
            raise PayloadError("room:message.text must be a string")
        return cls(room_id=ref.room_id, text=text)
