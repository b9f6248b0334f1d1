"""Per-connection message rate limiting for the global channel."""
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class RateLimitBucket:
    count: int
    window_start: int


class RateLimiter:
    """Fixed-window counter: at most `max_messages` per `window_ms`.

    A window starts with the first message after the previous one expired;
    it is replaced wholesale once more than `window_ms` has elapsed.
    """

    def __init__(self, clock: Callable[[], int], max_messages: int = 5, window_ms: int = 1000) -> None:
        self.clock = clock
        self.max_messages = max_messages
        self.window_ms = window_ms
        self._buckets: Dict[str, RateLimitBucket] = {}

    def hit(self, sid: str) -> bool:
        """Count one message from sid. Returns False when over the limit."""
        now = self.clock()
        bucket = self._buckets.get(sid)
        if bucket is None:
            bucket = self._buckets[sid] = RateLimitBucket(count=0, window_start=now)
        elif now - bucket.window_start > self.window_ms:
            bucket.count = 0
            bucket.window_start = now
        bucket.count += 1
        return bucket.count <= self.max_messages

    def forget(self, sid: str) -> None:
        self._buckets.pop(sid, None)

    def bucket(self, sid: str) -> Optional[RateLimitBucket]:
        return self._buckets.get(sid)
