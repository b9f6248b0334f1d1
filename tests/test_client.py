"""Tests for the terminal client's command parsing and local state."""
import pytest

from socketio_server.client import ChatClient, Command, parse_command
from utils.message_utils import MessageType


@pytest.mark.parametrize("line", ["", "   ", "\n"])
def test_blank_lines_are_ignored(line):
    assert parse_command(line) is None


def test_plain_text_goes_to_global_channel():
    command = parse_command("hola a todos\n")

    assert command.event is MessageType.CHAT_MESSAGE
    assert command.payload["text"] == "hola a todos"
    assert isinstance(command.payload["ts"], int)


@pytest.mark.parametrize("line, expected", [
    ("/create", Command(MessageType.ROOM_CREATE, {})),
    ("/create Board games", Command(MessageType.ROOM_CREATE, {"name": "Board games"})),
    ("/dm Beto", Command(MessageType.ROOM_CREATE, {"inviteUser": "Beto"})),
    ("/join room-abc123", Command(MessageType.ROOM_JOIN, {"roomId": "room-abc123"})),
    ("/leave room-abc123", Command(MessageType.ROOM_LEAVE, {"roomId": "room-abc123"})),
    ("/say room-abc123 hello there", Command(MessageType.ROOM_MESSAGE, {"roomId": "room-abc123", "text": "hello there"})),
    ("/quit", Command(MessageType.LOGOUT, local="quit")),
    ("/rooms", Command(None, local="rooms")),
    ("/WHO", Command(None, local="who")),
])
def test_commands(line, expected):
    assert parse_command(line) == expected


def test_ping_carries_a_timestamp():
    command = parse_command("/ping")

    assert command.event is MessageType.PING_RTT
    assert isinstance(command.payload, int)


@pytest.mark.parametrize("line", ["/dm", "/join", "/leave  ", "/say room-abc123", "/say", "/frobnicate"])
def test_malformed_commands_raise(line):
    with pytest.raises(ValueError):
        parse_command(line)


class RecordingClient(ChatClient):
    """ChatClient whose emits are captured instead of sent."""

    def __init__(self):
        super().__init__("http://localhost:0", "Ana")
        self.emitted = []
        self.sio.emit = lambda event, data=None: self.emitted.append((event, data))


def test_handle_line_emits_and_signals_quit(capsys):
    client = RecordingClient()

    assert client.handle_line("/join room-general") is True
    assert client.handle_line("/bogus") is True
    assert client.handle_line("/quit") is False

    assert client.emitted == [("room:join", {"roomId": "room-general"}), ("logout", None)]
    assert "unknown command" in capsys.readouterr().out


def test_describe_rooms():
    client = RecordingClient()
    assert client.describe_rooms() == "* no rooms"

    client.on_rooms([{"roomId": "room-general", "name": "Chat general (+2)", "participants": ["Ana", "Beto"]}])

    assert client.describe_rooms() == "* room-general: Chat general (+2) [Ana, Beto]"


GAMES = {"roomId": "room-games1", "name": "Games", "participants": ["Ana", "Beto"]}


def room_message(user, room_id="room-games1", text="hi"):
    return {"roomId": room_id, "user": user, "text": text, "ts": 0}


def test_unread_counts_are_listed_with_rooms():
    client = RecordingClient()
    client.on_rooms([GAMES])

    client.on_room_message(room_message("Beto"))
    client.on_room_message(room_message("Beto", text="again"))

    assert client.describe_rooms() == "* room-games1: Games [Ana, Beto]  (2 unread)"


def test_own_messages_are_not_unread():
    client = RecordingClient()

    client.on_room_message(room_message("Ana"))

    assert client.unread == {}


def test_joining_or_speaking_in_a_room_marks_it_read():
    client = RecordingClient()
    client.on_rooms([GAMES])
    client.on_room_message(room_message("Beto"))
    client.on_room_message(room_message("Beto", room_id="dm-Ana#Beto"))

    client.handle_line("/join room-games1")
    client.on_room_message(room_message("Beto", text="while reading"))

    assert client.unread == {"dm-Ana#Beto": 1}
    assert client.describe_rooms() == "* room-games1: Games [Ana, Beto]"

    client.handle_line("/say dm-Ana#Beto hey")

    assert client.unread == {}
    assert client.active_room == "dm-Ana#Beto"
