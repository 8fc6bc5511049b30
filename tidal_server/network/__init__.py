"""
Network layer for the hub server.

Provides the WebSocket server, connection management, message handling
and broadcast dispatch.
"""

from tidal_server.network.connection_manager import ConnectionManager, PeerConnection
from tidal_server.network.dispatcher import BroadcastDispatcher
from tidal_server.network.message_handler import MessageHandler, HandleResult
from tidal_server.network.server import HubServer, run_server


__all__ = [
    "ConnectionManager",
    "PeerConnection",
    "BroadcastDispatcher",
    "MessageHandler",
    "HandleResult",
    "HubServer",
    "run_server",
]
