"""
Broadcast dispatcher: pushes registry snapshots and chat to every client.

Every fan-out, and the welcome sequence for a new connection, runs
under one asyncio lock. Clients therefore see frames in the same global
order, and a new connection always receives currentPlayer before its
first playersUpdate.

The lock is held only as long as the slowest send, which the
ConnectionManager bounds with its send timeout.
"""

import asyncio
import logging

from websockets.asyncio.server import ServerConnection

from tidal_server.hub import PlayerRegistry
from tidal_server.network.connection_manager import ConnectionManager
from tidal_shared.protocol import (
    Message,
    ChatMessage,
    PlayerRecord,
    ChatBroadcast,
    CurrentPlayerMessage,
    PlayersUpdateMessage,
)


logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """
    Sends full-state snapshots and relayed chat to all connections.

    Keeps no state of its own beyond the ordering lock: every snapshot is
    read from the registry at send time.
    """

    def __init__(self, registry: PlayerRegistry, connection_manager: ConnectionManager):
        self._registry = registry
        self._connections = connection_manager
        self._lock = asyncio.Lock()

    async def welcome(
        self,
        connection_id: str,
        websocket: ServerConnection,
        record: PlayerRecord
    ) -> int:
        """
        Attach a new socket, send it its own record, then broadcast the roster.

        Returns:
            Number of connections that received the roster
        """
        async with self._lock:
            self._connections.connect(connection_id, websocket)
            await self._connections.send_to_connection(
                connection_id,
                CurrentPlayerMessage.create(record)
            )
            return await self._broadcast_snapshot()

    async def broadcast_players(self) -> int:
        """
        Send the current registry snapshot to every connection.

        Returns:
            Number of connections reached
        """
        async with self._lock:
            return await self._broadcast_snapshot()

    async def broadcast(self, message: Message) -> int:
        """Send an arbitrary message to every connection, in broadcast order."""
        async with self._lock:
            return await self._connections.broadcast_to_all(message)

    async def broadcast_chat(self, chat: ChatMessage) -> int:
        """Relay a chat line to every connection, sender included."""
        return await self.broadcast(ChatBroadcast.create(chat))

    async def _broadcast_snapshot(self) -> int:
        """Internal helper; caller holds the lock."""
        snapshot = self._registry.snapshot()
        sent = await self._connections.broadcast_to_all(PlayersUpdateMessage.create(snapshot))
        logger.debug(f"playersUpdate with {len(snapshot)} players sent to {sent} connections")
        return sent
