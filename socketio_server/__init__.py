"""Socket.IO server package for roomchat.

This package connects Socket.IO clients to the chat core.

Components:
- server: aiohttp + Socket.IO application, event wiring and HTTP endpoints
- transport: the core Transport implemented on socketio.AsyncServer
- client: interactive terminal client
"""

from . import client
from . import server
from . import transport

__all__ = [
    'client',
    'server',
    'transport'
]
