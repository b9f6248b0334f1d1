"""Result type returned by every chat hub handler.

Silently dropped requests are still an explicit outcome here so callers and
tests can see why nothing was emitted.
"""
import enum
from dataclasses import dataclass
from typing import Optional


class DropReason(enum.Enum):
    """Why an inbound request was discarded."""
    VALIDATION_FAILED = "validation_failed"
    RATE_LIMITED = "rate_limited"
    UNREGISTERED_SENDER = "unregistered_sender"
    ROOM_NOT_FOUND = "room_not_found"
    NAME_TAKEN = "name_taken"


@dataclass(frozen=True)
class Outcome:
    accepted: bool
    reason: Optional[DropReason] = None
    detail: Optional[str] = None

    @classmethod
    def ok(cls, detail: Optional[str] = None) -> "Outcome":
        return cls(True, None, detail)

    @classmethod
    def dropped(cls, reason: DropReason, detail: Optional[str] = None) -> "Outcome":
        return cls(False, reason, detail)

    def __bool__(self) -> bool:
        return self.accepted
