"""
Connection manager for WebSocket clients.

Tracks which socket belongs to which connection id and sends frames to
one connection or to all of them. Holds no game state; player records
live in the PlayerRegistry.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import websockets
from websockets.asyncio.server import ServerConnection

from tidal_server.config import settings
from tidal_shared.protocol import Message


logger = logging.getLogger(__name__)


@dataclass
class PeerConnection:
    """Tracks one open socket."""
    connection_id: str
    websocket: ServerConnection


def encode(message: Message | dict | str) -> str:
    """Serialize a message to the text sent on the wire."""
    if isinstance(message, Message):
        return message.to_json()
    if isinstance(message, dict):
        return json.dumps(message)
    return message


class ConnectionManager:
    """
    Manages open WebSocket connections.

    connect and disconnect are synchronous so that callers can pair
    them with registry changes without yielding to the event loop.

    A send that does not finish within send_timeout drops the peer: it
    is detached at once and its socket closed in the background, so a
    client that stops reading can hold up a fan-out only once.
    """

    def __init__(self, send_timeout: float | None = None):
        # connection_id -> PeerConnection
        self._connections: dict[str, PeerConnection] = {}
        self.send_timeout = settings.SEND_TIMEOUT if send_timeout is None else send_timeout
        self._closing: set[asyncio.Task] = set()
        self._dropped_count = 0

    # =========================================================================
    # Connection Lifecycle
    # =========================================================================

    def connect(self, connection_id: str, websocket: ServerConnection) -> PeerConnection:
        """Register an open socket under its connection id."""
        connection = PeerConnection(connection_id=connection_id, websocket=websocket)
        self._connections[connection_id] = connection
        logger.debug(f"Socket attached for {connection_id}")
        return connection

    def disconnect(self, connection_id: str) -> PeerConnection | None:
        """
        Forget a connection.

        Returns:
            The PeerConnection if found, None otherwise
        """
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.debug(f"Socket detached for {connection_id}")
        return connection

    def _drop(self, connection: PeerConnection) -> None:
        """Detach a peer that stopped reading and close its socket."""
        if self._connections.get(connection.connection_id) is not connection:
            return

        del self._connections[connection.connection_id]
        self._dropped_count += 1
        logger.warning(
            f"Dropped {connection.connection_id}: send took longer than {self.send_timeout}s"
        )

        # Closing ends the peer's receive loop, which unregisters the player
        task = asyncio.create_task(connection.websocket.close())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    # =========================================================================
    # Queries
    # =========================================================================

    def connection_ids(self) -> set[str]:
        """Get the ids of all open connections."""
        return set(self._connections)

    def __len__(self) -> int:
        return len(self._connections)

    # =========================================================================
    # Messaging
    # =========================================================================

    async def send_to_connection(
        self,
        connection_id: str,
        message: Message | dict | str
    ) -> bool:
        """
        Send a message to a specific connection.

        Returns:
            True if sent successfully, False if not connected or the send failed
        """
        connection = self._connections.get(connection_id)
        if not connection:
            return False

        return await self._send(connection, encode(message))

    async def broadcast_to_all(self, message: Message | dict | str) -> int:
        """
        Send one message to every open connection.

        The message is serialized once, so every recipient gets identical
        bytes. Sends run concurrently; connections that fail or time out
        are skipped.

        Returns:
            Number of connections the message was sent to
        """
        data = encode(message)
        results = await asyncio.gather(*[
            self._send(connection, data)
            for connection in list(self._connections.values())
        ])
        return sum(results)

    async def _send(self, connection: PeerConnection, data: str) -> bool:
        """Internal helper to send text to one socket."""
        try:
            await asyncio.wait_for(connection.websocket.send(data), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            self._drop(connection)
            return False
        except websockets.ConnectionClosed:
            logger.debug(f"Dropped frame for closed connection {connection.connection_id}")
            return False
        except Exception as e:
            logger.error(f"Failed to send message to {connection.connection_id}: {e}")
            return False

        return True

    # =========================================================================
    # Statistics
    # =========================================================================

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics."""
        return {
            "total_connections": len(self._connections),
            "dropped_slow": self._dropped_count,
        }
