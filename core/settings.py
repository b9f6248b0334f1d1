from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChatSettings:
    """Immutable chat limits and policy switches."""
    general_room_id: str = "room-general"
    max_message_length: int = 500
    max_user_length: int = 50
    rate_limit_window_ms: int = 1000
    rate_limit_max_messages: int = 5
    escape_room_messages: bool = False
    enforce_unique_names: bool = False

    @classmethod
    def from_config(cls, cfg: Any) -> "ChatSettings":
        """Build settings from a ConfigManager's 'chat' section."""
        defaults = cls()
        return cls(
            general_room_id=str(cfg.get('chat', 'general_room_id', default=defaults.general_room_id)),
            max_message_length=int(cfg.get('chat', 'max_message_length', default=defaults.max_message_length)),
            max_user_length=int(cfg.get('chat', 'max_user_length', default=defaults.max_user_length)),
            rate_limit_window_ms=int(cfg.get('chat', 'rate_limit_window_ms', default=defaults.rate_limit_window_ms)),
            rate_limit_max_messages=int(cfg.get('chat', 'rate_limit_max_messages', default=defaults.rate_limit_max_messages)),
            escape_room_messages=bool(cfg.get('chat', 'escape_room_messages', default=defaults.escape_room_messages)),
            enforce_unique_names=bool(cfg.get('chat', 'enforce_unique_names', default=defaults.enforce_unique_names)),
        )
