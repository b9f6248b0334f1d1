#!/usr/bin/env python3
"""Roomchat terminal client

A small interactive Socket.IO client for the chat server. Lines typed at the
prompt go to the global channel; lines starting with '/' are commands:

    /rooms                  show the last rooms snapshot with unread counts
    /who                    show who is online
    /create [name]          create a public room
    /dm <user>              open the direct-message room with a user
    /join <roomId>          join a room
    /leave <roomId>         leave a room
    /say <roomId> <text>    send a message to a room
    /ping                   measure round-trip time
    /quit                   log out and exit
"""
import sys
import time
import logging
import argparse
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import socketio

from utils.event_utils import EventType
from utils.message_utils import MessageType, now_ms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    event: Optional[MessageType]
    payload: Any = None
    local: Optional[str] = None # client-side only action ('rooms', 'who', 'quit', 'help')


def parse_command(line: str) -> Optional[Command]:
    """Translate one input line into the event to emit.

    Returns None for blank lines. Raises ValueError for malformed commands.
    """
    text = line.strip()
    if not text:
        return None
    if not text.startswith('/'):
        return Command(MessageType.CHAT_MESSAGE, {"text": text, "ts": now_ms()})

    verb, _, rest = text[1:].partition(' ')
    rest = rest.strip()
    verb = verb.lower()

    if verb in ('rooms', 'who', 'help'):
        return Command(None, local=verb)
    if verb == 'quit':
        return Command(MessageType.LOGOUT, local='quit')
    if verb == 'ping':
        return Command(MessageType.PING_RTT, now_ms())
    if verb == 'create':
        return Command(MessageType.ROOM_CREATE, {"name": rest} if rest else {})
    if verb == 'dm':
        if not rest:
            raise ValueError("usage: /dm <user>")
        return Command(MessageType.ROOM_CREATE, {"inviteUser": rest})
    if verb in ('join', 'leave'):
        if not rest:
            raise ValueError(f"usage: /{verb} <roomId>")
        event = MessageType.ROOM_JOIN if verb == 'join' else MessageType.ROOM_LEAVE
        return Command(event, {"roomId": rest})
    if verb == 'say':
        room_id, _, body = rest.partition(' ')
        if not room_id or not body.strip():
            raise ValueError("usage: /say <roomId> <text>")
        return Command(MessageType.ROOM_MESSAGE, {"roomId": room_id, "text": body.strip()})
    raise ValueError(f"unknown command: /{verb}")


def format_time(ts: Any) -> str:
    try:
        return time.strftime("%H:%M:%S", time.localtime(float(ts) / 1000))
    except (TypeError, ValueError, OverflowError):
        return time.strftime("%H:%M:%S")


class ChatClient:
    def __init__(self, url: str, name: str):
        self.url = url
        self.name = name
        self.presence: List[str] = []
        self.rooms: List[Dict[str, Any]] = []
        self.unread: Dict[str, int] = {}
        self.active_room: Optional[str] = None

        # Initialize Socket.IO client with reduced logging
        self.sio = socketio.Client(logger=False, engineio_logger=False)
        self.register_handlers()

    # --- Socket.IO Event Handlers ---

    def register_handlers(self):
        """Register Socket.IO event handlers."""
        self.sio.on('connect', self.on_connect)
        self.sio.on('disconnect', self.on_disconnect)
        self.sio.on(EventType.SYSTEM.value, self.on_system)
        self.sio.on(EventType.SYSTEM_INFO.value, self.on_system)
        self.sio.on(EventType.SYSTEM_ERROR.value, self.on_error)
        self.sio.on(EventType.CHAT_MESSAGE.value, self.on_chat_message)
        self.sio.on(EventType.PRESENCE_UPDATE.value, self.on_presence)
        self.sio.on(EventType.ROOMS_UPDATE.value, self.on_rooms)
        self.sio.on(EventType.ROOM_INVITED.value, self.on_invited)
        self.sio.on(EventType.ROOM_CREATED.value, self.on_room_created)
        self.sio.on(EventType.ROOM_MESSAGE.value, self.on_room_message)
        self.sio.on(EventType.PONG_RTT.value, self.on_pong)

    def on_connect(self):
        logger.info(f"Connected to {self.url} with SID: {self.sio.sid}")
        self.sio.emit(MessageType.JOIN.value, {"username": self.name})

    def on_disconnect(self, reason=None):
        print("* Disconnected from server.")

    def on_system(self, data):
        print(f"* [{format_time(data.get('ts'))}] {data.get('text')}")

    def on_error(self, data):
        print(f"! error: {data.get('code')}")

    def on_chat_message(self, data):
        print(f"{data.get('user')} [{format_time(data.get('ts'))}]: {data.get('text')}")

    def on_presence(self, names):
        self.presence = list(names or [])

    def on_rooms(self, rooms):
        self.rooms = list(rooms or [])

    def on_invited(self, data):
        print(f"* {data.get('owner')} invited you to '{data.get('name')}' ({data.get('roomId')})")

    def on_room_created(self, data):
        print(f"* room ready: '{data.get('name')}' ({data.get('roomId')})")

    def on_room_message(self, data):
        room_id = data.get('roomId')
        if room_id != self.active_room and data.get('user') != self.name:
            self.unread[room_id] = self.unread.get(room_id, 0) + 1
        print(f"[{room_id}] {data.get('user')} [{format_time(data.get('ts'))}]: {data.get('text')}")

    def on_pong(self, ts=None):
        try:
            print(f"* RTT: {now_ms() - int(ts)} ms")
        except (TypeError, ValueError):
            print("* RTT: unknown")

    # --- Local commands ---

    def open_room(self, room_id: str) -> None:
        """Make room_id the room being read; its backlog counts as seen."""
        self.active_room = room_id
        self.unread.pop(room_id, None)

    def describe_rooms(self) -> str:
        if not self.rooms:
            return "* no rooms"
        lines = []
        for room in self.rooms:
            who = ", ".join(room.get('participants', []))
            line = f"* {room.get('roomId')}: {room.get('name')} [{who}]"
            unread = self.unread.get(room.get('roomId'), 0)
            if unread > 0:
                line = f"{line}  ({unread} unread)"
            lines.append(line)
        return "\n".join(lines)

    def handle_line(self, line: str) -> bool:
        """Process one input line. Returns False when the client should exit."""
        try:
            command = parse_command(line)
        except ValueError as e:
            print(f"! {e}")
            return True
        if command is None:
            return True

        if command.local == 'rooms':
            print(self.describe_rooms())
        elif command.local == 'who':
            print("* online: " + (", ".join(self.presence) or "nobody"))
        elif command.local == 'help':
            print(__doc__)

        if command.event in (MessageType.ROOM_JOIN, MessageType.ROOM_MESSAGE):
            self.open_room(command.payload['roomId'])

        if command.event is not None:
            self.sio.emit(command.event.value, command.payload)
        return command.local != 'quit'

    def run(self) -> int:
        try:
            self.sio.connect(self.url)
        except socketio.exceptions.ConnectionError as e:
            logger.error(f"Failed to connect to server: {e}")
            return 1

        try:
            for line in sys.stdin:
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:
            logger.info("Shutdown requested by user")
        finally:
            self.disconnect()
        return 0

    def disconnect(self):
        """Disconnect from the Socket.IO server."""
        if self.sio and self.sio.connected:
            self.sio.disconnect()


def parse_args(argv=None) -> Tuple[str, str, bool]:
    parser = argparse.ArgumentParser(description='Roomchat terminal client')
    parser.add_argument('--url', default='http://localhost:3000', help='Server URL')
    parser.add_argument('--name', required=True, help='Display name')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)
    return args.url, args.name, args.debug


def main(argv=None):
    """Main entry point."""
    url, name, debug = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if debug else logging.WARNING,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    return ChatClient(url, name).run()


if __name__ == '__main__':
    sys.exit(main())
