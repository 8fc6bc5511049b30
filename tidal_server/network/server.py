"""
WebSocket server for the Tidal Idle hub.

Main entry point that ties together the player registry, connection
management, message handling and broadcast dispatch. The same port
answers a plain HTTP liveness probe.
"""

import asyncio
import json
import logging
import signal
from http import HTTPStatus
from typing import Any

import websockets
from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.http11 import Request, Response

from tidal_server.config import settings
from tidal_server.hub import PlayerRegistry
from tidal_server.network.connection_manager import ConnectionManager
from tidal_server.network.dispatcher import BroadcastDispatcher
from tidal_server.network.message_handler import MessageHandler
from tidal_shared.protocol import PlayerRecord


logger = logging.getLogger(__name__)


class HubServer:
    """
    WebSocket server for the multiplayer hub.

    One socket is one player for the socket's lifetime. Opening a socket
    registers the player, closing it removes them; both broadcast the
    full roster.
    """

    def __init__(
        self,
        host: str = None,
        port: int = None,
        registry: PlayerRegistry = None
    ):
        self.host = host or settings.HOST
        self.port = settings.PORT if port is None else port

        # Initialize state and managers
        self._registry = registry if registry is not None else PlayerRegistry()
        self._connections = ConnectionManager()
        self._dispatcher = BroadcastDispatcher(self._registry, self._connections)
        self._handler = MessageHandler(self._registry)

        # Server state
        self._server: Server | None = None
        self._running = False
        self._shutdown_event = asyncio.Event()

    @property
    def registry(self) -> PlayerRegistry:
        return self._registry

    @property
    def bound_port(self) -> int | None:
        """The port actually listened on (useful when started with port 0)."""
        if not self._server:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def listen(self) -> None:
        """Bind the listening socket without waiting for shutdown."""
        self._running = True
        self._shutdown_event.clear()

        self._server = await serve(
            self._handle_client,
            self.host,
            self.port,
            process_request=self._process_request,
            ping_interval=settings.PING_INTERVAL,
            ping_timeout=settings.PING_TIMEOUT,
        )

        logger.info(f"Tidal Idle hub started on ws://{self.host}:{self.bound_port}")

    async def start(self) -> None:
        """Start the WebSocket server and run until stopped."""
        await self.listen()

        # Wait for shutdown signal
        await self._shutdown_event.wait()

    async def stop(self) -> None:
        """Stop the server gracefully."""
        logger.info("Shutting down server...")
        self._running = False

        if self._server:
            self._server.close()
            await self._server.wait_closed()

        self._shutdown_event.set()
        logger.info("Server stopped")

    def request_shutdown(self) -> None:
        """Request server shutdown (can be called from signal handler)."""
        asyncio.create_task(self.stop())

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        """Answer the liveness probe; let every other request upgrade."""
        path = request.path.split("?", 1)[0]
        if path != settings.HEALTH_PATH:
            return None

        response = connection.respond(HTTPStatus.OK, json.dumps({"status": "ok"}))
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        return response

    async def _handle_client(self, websocket: ServerConnection) -> None:
        """
        Handle a client connection for its whole lifetime.

        Registration happens as soon as the socket opens; there is no
        handshake message.
        """
        connection_id = None

        try:
            record = self._registry.on_connect(str(websocket.id))
            connection_id = record.id
            await self._handle_connect(websocket, record)

            # Handle messages until disconnect
            async for raw_message in websocket:
                if not self._running:
                    break

                await self._handle_message(connection_id, raw_message)

        except websockets.ConnectionClosed:
            logger.debug(f"Connection closed for {connection_id}")
        except Exception as e:
            logger.exception(f"Error handling client {connection_id}: {e}")
        finally:
            if connection_id:
                await self._handle_disconnect(connection_id)

    async def _handle_connect(self, websocket: ServerConnection, record: PlayerRecord) -> None:
        """Announce a freshly registered player."""
        logger.info(f"Player connected: {record.name} ({record.id})")

        await self._dispatcher.welcome(record.id, websocket, record)

    async def _handle_message(self, connection_id: str, raw_message: str | bytes) -> None:
        """Handle an incoming frame from a connected player."""
        result = await self._handler.handle_message(connection_id, raw_message)

        # Send response to requester
        if result.response:
            await self._connections.send_to_connection(connection_id, result.response)

        if result.broadcasts:
            for broadcast in result.broadcasts:
                await self._dispatcher.broadcast(broadcast)

        if result.broadcast_state:
            await self._dispatcher.broadcast_players()

    async def _handle_disconnect(self, connection_id: str) -> None:
        """Remove the player and broadcast the roster without them."""
        self._connections.disconnect(connection_id)
        record = self._registry.on_disconnect(connection_id)

        if record is None:
            return

        logger.info(f"Player disconnected: {record.name} ({connection_id})")

        if self._running:
            await self._dispatcher.broadcast_players()

    def get_stats(self) -> dict[str, Any]:
        """Get server statistics."""
        return {
            "running": self._running,
            "players": len(self._registry),
            "connections": self._connections.get_stats(),
        }


async def run_server(host: str = None, port: int = None) -> None:
    """
    Run the hub server.

    Sets up signal handlers for graceful shutdown.
    """
    server = HubServer(host, port)

    # Set up signal handlers
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, server.request_shutdown)

    try:
        await server.start()
    finally:
        # Clean up signal handlers
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)


def main():
    """Entry point for running the server."""
    # Configure logging
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print(f"Starting Tidal Idle hub on ws://{settings.HOST}:{settings.PORT}")
    print("Press Ctrl+C to stop")

    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        print("\nServer stopped")


if __name__ == "__main__":
    main()
