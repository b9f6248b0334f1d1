"""Utility functions and helpers for the roomchat server"""
from .path_config import (
    get_app_root,
    get_config_dir,
    get_logs_dir,
    get_static_dir
)
from .event_utils import EventType
from .message_utils import MessageType, ErrorCode, escape_html, now_ms

__all__ = [
    'get_app_root',
    'get_config_dir',
    'get_logs_dir',
    'get_static_dir',
    'EventType',
    'MessageType',
    'ErrorCode',
    'escape_html',
    'now_ms'
]
