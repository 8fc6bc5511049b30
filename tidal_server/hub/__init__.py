"""
Hub state: the player registry and chat line construction.
"""

from tidal_server.hub.registry import PlayerRegistry
from tidal_server.hub.chat import build_chat_message, format_timestamp


__all__ = [
    "PlayerRegistry",
    "build_chat_message",
    "format_timestamp",
]
