"""
WebSocket client for connecting to the hub server.

Handles connection, reconnection, and message passing. Server frames
update a local Roster; callers observe changes through callbacks or by
awaiting wait_until().
"""

import asyncio
import json
import logging
from enum import Enum, auto
from typing import Any, Callable, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect as ws_connect

from tidal_client.config import ClientSettings, settings as default_settings
from tidal_client.roster import Roster, RosterDiff
from tidal_shared.constants import MIN_X, MAX_X, MIN_Y, MAX_Y
from tidal_shared.enums import MessageType
from tidal_shared.protocol import (
    Message,
    ChatMessage,
    ChatRequest,
    MoveRequest,
    PlayerRecord,
    clamp,
)


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection state."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()
    RECONNECTING = auto()
    FAILED = auto()


class HubClient:
    """
    WebSocket client for hub server communication.

    Callbacks (all optional, all synchronous):
    - on_state_change(state): connection state changed
    - on_roster_change(diff): a snapshot added, removed or moved players
    - on_chat(chat): a chat line arrived
    - on_error(message): the server reported an error or a send failed
    """

    def __init__(
        self,
        config: ClientSettings | None = None,
        on_state_change: Callable[[ConnectionState], None] | None = None,
        on_roster_change: Callable[[RosterDiff], None] | None = None,
        on_chat: Callable[[ChatMessage], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ):
        self._config = config or default_settings
        self._on_state_change = on_state_change
        self._on_roster_change = on_roster_change
        self._on_chat = on_chat
        self._on_error = on_error

        self._websocket: Optional[ClientConnection] = None
        self._state = ConnectionState.DISCONNECTED
        self._player: Optional[PlayerRecord] = None
        self._position: Optional[tuple[int | float, int | float]] = None
        self._roster = Roster()
        self._chat_log: list[ChatMessage] = []

        self._receive_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._should_reconnect = True

        # Notified after every processed frame and state change
        self._changed = asyncio.Condition()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def player(self) -> Optional[PlayerRecord]:
        """This connection's own record, as last reported by the server."""
        if not self._player:
            return None
        return self._roster.get(self._player.id) or self._player

    @property
    def position(self) -> Optional[tuple[int | float, int | float]]:
        """
        Predicted position, updated as soon as a move is sent.

        The server stores exactly the clamped value claimed, so the
        prediction never needs correcting from snapshots.
        """
        return self._position

    @property
    def player_id(self) -> Optional[str]:
        return self._player.id if self._player else None

    @property
    def roster(self) -> Roster:
        return self._roster

    @property
    def chat_log(self) -> list[ChatMessage]:
        return list(self._chat_log)

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    def _set_state(self, state: ConnectionState) -> None:
        """Update connection state and notify."""
        if self._state != state:
            self._state = state
            if self._on_state_change:
                self._on_state_change(state)

    def _report_error(self, message: str) -> None:
        if self._on_error:
            self._on_error(message)

    # =========================================================================
    # Connection
    # =========================================================================

    async def connect(self, reconnect: bool = True) -> bool:
        """
        Connect to the server and wait for this player's record.

        Args:
            reconnect: Whether to reconnect automatically if the server drops us

        Returns:
            True if connection successful
        """
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            return self._state == ConnectionState.CONNECTED

        self._should_reconnect = reconnect
        return await self._do_connect()

    async def _do_connect(self) -> bool:
        """Perform the actual connection."""
        self._set_state(ConnectionState.CONNECTING)

        try:
            self._websocket = await ws_connect(self._config.server_url)

            # The server registers us on open and sends currentPlayer first
            raw = await asyncio.wait_for(
                self._websocket.recv(),
                timeout=self._config.welcome_timeout
            )
            data = json.loads(raw)

            if data.get("type") == MessageType.CURRENT_PLAYER.value:
                self._player = PlayerRecord.from_dict(data["data"])
                self._position = (self._player.x, self._player.y)
                self._set_state(ConnectionState.CONNECTED)

                # Start receive loop
                self._receive_task = asyncio.create_task(self._receive_loop())

                logger.info(f"Connected as {self._player.name} ({self._player.id})")
                return True

            self._report_error(f"Unexpected first frame: {data.get('type')!r}")

        except asyncio.TimeoutError:
            self._report_error("Connection timeout")
        except Exception as e:
            logger.exception(f"Connection failed: {e}")
            self._report_error(f"Connection failed: {e}")

        if self._websocket:
            await self._websocket.close()
            self._websocket = None
        self._set_state(ConnectionState.FAILED)
        return False

    async def disconnect(self) -> None:
        """Disconnect from the server."""
        self._should_reconnect = False

        if self._reconnect_task:
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
            self._reconnect_task = None

        if self._websocket:
            await self._websocket.close()

        if self._receive_task:
            await self._receive_task
            self._receive_task = None

        self._websocket = None
        self._set_state(ConnectionState.DISCONNECTED)
        await self._notify()
        logger.info("Disconnected from server")

    async def _receive_loop(self) -> None:
        """Receive messages from server."""
        try:
            async for raw_message in self._websocket:
                try:
                    data = json.loads(raw_message)
                    self._handle_message(data)
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse message: {e}")
                except Exception as e:
                    logger.exception(f"Error handling message: {e}")
                await self._notify()

        except websockets.ConnectionClosed:
            logger.info("Connection closed by server")
        finally:
            if self._should_reconnect:
                self._reconnect_task = asyncio.create_task(self._reconnect())
            else:
                self._set_state(ConnectionState.DISCONNECTED)

    def _handle_message(self, data: dict) -> None:
        """Handle an incoming message."""
        msg_type = data.get("type")
        payload = data.get("data")

        if msg_type == MessageType.PLAYERS_UPDATE.value:
            diff = self._roster.apply(payload or {})
            if self._on_roster_change and not diff.is_empty:
                self._on_roster_change(diff)

        elif msg_type == MessageType.CHAT.value:
            chat = ChatMessage.from_dict(payload)
            self._chat_log.append(chat)
            if self._on_chat:
                self._on_chat(chat)

        elif msg_type == MessageType.CURRENT_PLAYER.value:
            self._player = PlayerRecord.from_dict(payload)
            self._position = (self._player.x, self._player.y)

        elif msg_type == MessageType.ERROR.value:
            self._report_error((payload or {}).get("message", "Unknown error"))

        else:
            logger.debug(f"Ignoring {msg_type!r} frame")

    async def _reconnect(self) -> None:
        """
        Attempt to reconnect to the server.

        The server treats a new socket as a new player, so the roster and
        own record are reset first.
        """
        self._set_state(ConnectionState.RECONNECTING)
        self._player = None
        self._position = None
        diff = self._roster.clear()
        if self._on_roster_change and not diff.is_empty:
            self._on_roster_change(diff)

        for attempt in range(self._config.reconnect_attempts):
            logger.info(f"Reconnection attempt {attempt + 1}/{self._config.reconnect_attempts}")

            await asyncio.sleep(self._config.reconnect_delay)

            if not self._should_reconnect:
                break

            if await self._do_connect():
                return

        self._set_state(ConnectionState.FAILED)
        self._report_error("Failed to reconnect to server")

    # =========================================================================
    # Sending
    # =========================================================================

    async def send(self, message: Message | dict) -> bool:
        """
        Send a message to the server.

        Returns:
            True if the frame was written
        """
        if not self._websocket or self._state != ConnectionState.CONNECTED:
            self._report_error("Not connected to server")
            return False

        try:
            if isinstance(message, Message):
                data = message.to_json()
            else:
                data = json.dumps(message)

            await self._websocket.send(data)
            return True

        except Exception as e:
            logger.exception(f"Failed to send message: {e}")
            self._report_error(f"Failed to send: {e}")
            return False

    async def move(self, x: int | float, y: int | float) -> bool:
        """Claim an absolute position. The server clamps it to the playable bounds."""
        if not self._player:
            return False

        self._position = (clamp(x, MIN_X, MAX_X), clamp(y, MIN_Y, MAX_Y))
        return await self.send(MoveRequest.create(x, y))

    async def step(self, dx: int, dy: int) -> bool:
        """
        Move by dx, dy input steps (each -1, 0 or 1) from the predicted position.

        Repeated steps accumulate on the prediction without waiting for
        the server's snapshots.
        """
        if not self._position:
            return False

        speed = self._config.move_speed
        x, y = self._position
        return await self.move(x + dx * speed, y + dy * speed)

    async def say(self, text: str) -> bool:
        """Send a chat line. Blank lines are not sent."""
        text = text.strip()
        if not text:
            return False
        return await self.send(ChatRequest.create(text))

    # =========================================================================
    # Waiting
    # =========================================================================

    async def _notify(self) -> None:
        async with self._changed:
            self._changed.notify_all()

    async def wait_until(self, predicate: Callable[[], Any], timeout: float = 5.0) -> bool:
        """
        Wait until predicate() is truthy, re-checking after every frame.

        Returns:
            True if the predicate held before the timeout
        """
        async def _wait() -> None:
            async with self._changed:
                await self._changed.wait_for(predicate)

        try:
            await asyncio.wait_for(_wait(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False
