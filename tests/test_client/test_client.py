"""
Tests for HubClient frame handling and the terminal command parser.

These run without a server; the websocket is replaced by a recorder.

Run with: python3 -m pytest tests/test_client
"""

import json
import sys
import unittest
from dataclasses import replace
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from tidal_client.config import ClientSettings
from tidal_client.main import Command, parse_command
from tidal_client.network.client import HubClient, ConnectionState
from tidal_shared.protocol import PlayerRecord


class RecordingWebSocket:
    """Collects sent frames."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self) -> None:
        pass


class ClientTestCase(unittest.IsolatedAsyncioTestCase):
    """A client that believes it is connected as Player5 at (100, 200)."""

    async def asyncSetUp(self):
        self.diffs = []
        self.chats = []
        self.errors = []
        self.config = replace(ClientSettings(), move_speed=3)
        self.client = HubClient(
            config=self.config,
            on_roster_change=self.diffs.append,
            on_chat=self.chats.append,
            on_error=self.errors.append,
        )
        self.ws = RecordingWebSocket()
        self.me = PlayerRecord(id="me", x=100, y=200, name="Player5")

        self.client._websocket = self.ws
        self.client._handle_message({"type": "currentPlayer", "data": self.me.to_dict()})
        self.client._set_state(ConnectionState.CONNECTED)


class TestIncomingFrames(ClientTestCase):

    def test_current_player(self):
        self.assertEqual(self.client.player_id, "me")
        self.assertEqual(self.client.position, (100, 200))
        self.assertEqual(self.client.player, self.me)

    def test_players_update(self):
        self.client._handle_message({"type": "playersUpdate", "data": {
            "me": {"id": "me", "x": 100, "y": 200, "name": "Player5"},
            "other": {"id": "other", "x": 40, "y": 50, "name": "Player9"},
        }})

        self.assertEqual(self.client.roster.ids(), {"me", "other"})
        self.assertEqual(len(self.diffs), 1)
        self.assertEqual(len(self.diffs[0].joined), 2)

    def test_unchanged_snapshot_not_reported(self):
        snapshot = {"me": self.me.to_dict()}
        self.client._handle_message({"type": "playersUpdate", "data": snapshot})
        self.client._handle_message({"type": "playersUpdate", "data": snapshot})

        self.assertEqual(len(self.diffs), 1)

    def test_chat(self):
        self.client._handle_message({"type": "chat message", "data": {
            "player": "Player9", "message": "hi", "timestamp": "1:02:03 PM",
        }})

        self.assertEqual(len(self.chats), 1)
        self.assertEqual(self.chats[0].message, "hi")
        self.assertEqual(self.client.chat_log, self.chats)

    def test_error(self):
        self.client._handle_message({"type": "error", "data": {"message": "nope", "code": "PARSE_ERROR"}})
        self.assertEqual(self.errors, ["nope"])

    def test_unknown_frame_ignored(self):
        self.client._handle_message({"type": "teleport", "data": {}})

        self.assertEqual(self.diffs, [])
        self.assertEqual(self.errors, [])


class TestSending(ClientTestCase):

    async def test_move_sends_raw_claim(self):
        self.assertTrue(await self.client.move(9999, -50))

        self.assertEqual(self.ws.sent, [{"type": "move", "data": {"x": 9999, "y": -50}}])
        self.assertEqual(self.client.position, (785, 15))

    async def test_steps_accumulate(self):
        for _ in range(3):
            await self.client.step(1, 0)
        await self.client.step(0, -1)

        self.assertEqual(self.client.position, (109, 197))
        self.assertEqual(self.ws.sent[-1]["data"], {"x": 109, "y": 197})
        self.assertEqual(len(self.ws.sent), 4)

    async def test_step_stops_at_edge(self):
        await self.client.move(785, 200)
        await self.client.step(1, 0)

        self.assertEqual(self.client.position, (785, 200))

    async def test_say_trims(self):
        self.assertTrue(await self.client.say("  hello  "))
        self.assertEqual(self.ws.sent, [{"type": "chat message", "data": "hello"}])

    async def test_blank_say_not_sent(self):
        self.assertFalse(await self.client.say(" \t "))
        self.assertEqual(self.ws.sent, [])

    async def test_not_connected(self):
        self.client._set_state(ConnectionState.DISCONNECTED)

        self.assertFalse(await self.client.say("hello"))
        self.assertEqual(self.ws.sent, [])
        self.assertEqual(self.errors, ["Not connected to server"])

    async def test_move_without_player(self):
        client = HubClient(config=self.config)
        self.assertFalse(await client.move(10, 10))
        self.assertFalse(await client.step(1, 0))

    async def test_wait_until_times_out(self):
        self.assertFalse(await self.client.wait_until(lambda: False, timeout=0.05))
        self.assertTrue(await self.client.wait_until(lambda: True, timeout=0.05))


class TestParseCommand(unittest.TestCase):

    def test_chat(self):
        self.assertEqual(parse_command("hello there\n"), Command("say", ("hello there",)))

    def test_steps(self):
        self.assertEqual(parse_command("/w"), Command("step", (0, -1)))
        self.assertEqual(parse_command("/A"), Command("step", (-1, 0)))
        self.assertEqual(parse_command("/s"), Command("step", (0, 1)))
        self.assertEqual(parse_command("/d"), Command("step", (1, 0)))

    def test_move(self):
        self.assertEqual(parse_command("/move 10 20.5"), Command("move", (10.0, 20.5)))

    def test_bad_move(self):
        for line in ["/move", "/move 10", "/move a b", "/move 1 2 3"]:
            with self.subTest(line=line):
                self.assertIsNone(parse_command(line))

    def test_who_and_quit(self):
        self.assertEqual(parse_command("/who"), Command("who"))
        self.assertEqual(parse_command("/quit"), Command("quit"))

    def test_ignored(self):
        for line in ["", "   \n", "/dance"]:
            with self.subTest(line=line):
                self.assertIsNone(parse_command(line))


if __name__ == "__main__":
    unittest.main()
