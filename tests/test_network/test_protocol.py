"""
Tests for the wire protocol.

Run with: python3 -m pytest tests/test_network
"""

import json
import sys
import unittest
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tidal_shared.enums import MessageType, ErrorCode
from tidal_shared.protocol import (
    Message,
    ChatMessage,
    PlayerRecord,
    ChatRequest,
    MoveRequest,
    ErrorMessage,
    ChatBroadcast,
    CurrentPlayerMessage,
    PlayersUpdateMessage,
    ProtocolError,
    parse_message,
    read_position,
)


class TestWireFormat(unittest.TestCase):
    """Frames use the event names clients listen for."""

    def test_event_names(self):
        self.assertEqual(MessageType.MOVE.value, "move")
        self.assertEqual(MessageType.CHAT.value, "chat message")
        self.assertEqual(MessageType.CURRENT_PLAYER.value, "currentPlayer")
        self.assertEqual(MessageType.PLAYERS_UPDATE.value, "playersUpdate")

    def test_move_request(self):
        frame = json.loads(MoveRequest.create(10, 20.5).to_json())
        self.assertEqual(frame, {"type": "move", "data": {"x": 10, "y": 20.5}})

    def test_chat_request_carries_bare_string(self):
        frame = json.loads(ChatRequest.create("hi").to_json())
        self.assertEqual(frame, {"type": "chat message", "data": "hi"})

    def test_current_player(self):
        record = PlayerRecord(id="abc", x=30, y=40, name="Player7")
        frame = json.loads(CurrentPlayerMessage.create(record).to_json())

        self.assertEqual(frame["type"], "currentPlayer")
        self.assertEqual(frame["data"], {"id": "abc", "x": 30, "y": 40, "name": "Player7"})

    def test_players_update_keyed_by_id(self):
        snapshot = {
            "a": {"id": "a", "x": 20, "y": 20, "name": "Player1"},
            "b": {"id": "b", "x": 50, "y": 60, "name": "Player2"},
        }
        frame = json.loads(PlayersUpdateMessage.create(snapshot).to_json())

        self.assertEqual(frame["type"], "playersUpdate")
        self.assertEqual(frame["data"], snapshot)

    def test_chat_broadcast(self):
        chat = ChatMessage(player="Player1", message="hello", timestamp="3:04:05 PM")
        frame = json.loads(ChatBroadcast.create(chat).to_json())

        self.assertEqual(frame, {
            "type": "chat message",
            "data": {"player": "Player1", "message": "hello", "timestamp": "3:04:05 PM"},
        })

    def test_error_message(self):
        err = ErrorMessage.create("bad", ErrorCode.PARSE_ERROR)
        self.assertEqual(err.data, {"message": "bad", "code": "PARSE_ERROR"})


class TestParsing(unittest.TestCase):
    """Decoding untrusted frames."""

    def test_parse_move(self):
        msg = parse_message('{"type": "move", "data": {"x": 1, "y": 2}}')
        self.assertEqual(msg.type, MessageType.MOVE)
        self.assertEqual(msg.data, {"x": 1, "y": 2})

    def test_parse_bytes(self):
        msg = parse_message(b'{"type": "chat message", "data": "yo"}')
        self.assertEqual(msg.type, MessageType.CHAT)
        self.assertEqual(msg.data, "yo")

    def test_missing_data_is_none(self):
        msg = parse_message('{"type": "move"}')
        self.assertIsNone(msg.data)

    def test_invalid_json(self):
        with self.assertRaises(ProtocolError) as ctx:
            parse_message("not json")
        self.assertEqual(ctx.exception.code, ErrorCode.PARSE_ERROR)

    @unittest.skipUnless(
        hasattr(sys, "get_int_max_str_digits"),
        "interpreter has no integer digit limit"
    )
    def test_oversized_integer(self):
        frame = '{"type": "move", "data": {"x": ' + "9" * 5000 + ', "y": 1}}'
        with self.assertRaises(ProtocolError) as ctx:
            parse_message(frame)
        self.assertEqual(ctx.exception.code, ErrorCode.PARSE_ERROR)

    def test_deep_nesting(self):
        depth = 100_000
        frame = '{"type": "move", "data": ' + "[" * depth + "]" * depth + "}"
        with self.assertRaises(ProtocolError) as ctx:
            parse_message(frame)
        self.assertEqual(ctx.exception.code, ErrorCode.PARSE_ERROR)

    def test_invalid_utf8(self):
        with self.assertRaises(ProtocolError):
            parse_message(b'{"type": "move", "data": "\xff\xfe"}')

    def test_non_object_frame(self):
        for frame in ["[]", '"move"', "42", "null"]:
            with self.subTest(frame=frame):
                with self.assertRaises(ProtocolError) as ctx:
                    parse_message(frame)
                self.assertEqual(ctx.exception.code, ErrorCode.PARSE_ERROR)

    def test_unknown_type(self):
        for frame in ['{"type": "teleport"}', '{"data": {}}', '{"type": 5}']:
            with self.subTest(frame=frame):
                with self.assertRaises(ProtocolError) as ctx:
                    parse_message(frame)
                self.assertEqual(ctx.exception.code, ErrorCode.UNKNOWN_MESSAGE_TYPE)

    def test_from_dict(self):
        msg = Message.from_dict({"type": "chat message", "data": "hey"})
        self.assertEqual(msg.type, MessageType.CHAT)


class TestPositionPayload(unittest.TestCase):
    """Reading move payloads."""

    def test_valid(self):
        self.assertEqual(read_position({"x": 1, "y": 2.5}), (1, 2.5))
        self.assertEqual(read_position({"x": -1e6, "y": 1e6, "extra": True}), (-1e6, 1e6))

    def test_infinity_accepted(self):
        x, y = read_position(json.loads('{"x": Infinity, "y": -Infinity}'))
        self.assertEqual((x, y), (float("inf"), float("-inf")))

    def test_rejected(self):
        bad_payloads = [
            None,
            "10,20",
            [10, 20],
            {"x": 10},
            {"y": 10},
            {"x": "10", "y": 20},
            {"x": 10, "y": None},
            {"x": True, "y": 20},
            {"x": float("nan"), "y": 20},
            {"x": {"v": 1}, "y": 20},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ProtocolError):
                    read_position(payload)


class TestRecords(unittest.TestCase):

    def test_player_record_from_dict(self):
        record = PlayerRecord.from_dict({"id": "a", "x": 1, "y": 2, "name": "Player3"})
        self.assertEqual(record, PlayerRecord(id="a", x=1, y=2, name="Player3"))

    def test_player_record_missing_field(self):
        with self.assertRaises(KeyError):
            PlayerRecord.from_dict({"id": "a", "x": 1, "y": 2})


if __name__ == "__main__":
    unittest.main()
