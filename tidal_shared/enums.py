"""
Enumerations used on the wire.
"""
from enum import Enum


class MessageType(str, Enum):
    """Event names carried in the "type" field of every frame."""
    # Client -> Server
    MOVE = "move"
    CHAT = "chat message"

    # Server -> Client
    CURRENT_PLAYER = "currentPlayer"
    PLAYERS_UPDATE = "playersUpdate"

    # Errors
    ERROR = "error"


class ErrorCode(str, Enum):
    """Codes sent in error frames."""
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN_MESSAGE_TYPE = "UNKNOWN_MESSAGE_TYPE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
