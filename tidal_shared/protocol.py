"""
Message protocol for client-server communication.

Every frame is a JSON object with a "type" field naming the event and a
"data" field carrying its payload. Payloads are not always objects: a
server-bound chat frame carries a bare string.
"""

from dataclasses import dataclass, field, asdict
from typing import Any
import json
import math

from tidal_shared.enums import MessageType, ErrorCode


class ProtocolError(ValueError):
    """Raised when a frame cannot be decoded into a Message."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.PARSE_ERROR):
        super().__init__(message)
        self.code = code


@dataclass
class Message:
    """Base message structure for all client-server communication."""
    type: MessageType
    data: Any = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize message to JSON string."""
        return json.dumps(self.to_dict())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "data": self.data,
        }

    @classmethod
    def from_json(cls, json_str: str | bytes) -> "Message":
        """Deserialize message from JSON string."""
        try:
            raw = json.loads(json_str)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError and UnicodeDecodeError are ValueErrors; so are
            # integers past the interpreter's digit limit
            raise ProtocolError(f"Invalid JSON: {e}") from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> "Message":
        """Create message from dictionary."""
        if not isinstance(raw, dict):
            raise ProtocolError("Frame must be a JSON object")
        try:
            message_type = MessageType(raw.get("type"))
        except ValueError:
            raise ProtocolError(
                f"Unknown message type: {raw.get('type')!r}",
                ErrorCode.UNKNOWN_MESSAGE_TYPE,
            ) from None
        return cls(type=message_type, data=raw.get("data"))


# =============================================================================
# Records
# =============================================================================

@dataclass
class PlayerRecord:
    """One connected player as seen by every client."""
    id: str
    x: int | float
    y: int | float
    name: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "PlayerRecord":
        return cls(
            id=data["id"],
            x=data["x"],
            y=data["y"],
            name=data["name"],
        )


@dataclass
class ChatMessage:
    """A relayed chat line. Built per event and never stored."""
    player: str
    message: str
    timestamp: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ChatMessage":
        return cls(
            player=data["player"],
            message=data["message"],
            timestamp=data["timestamp"],
        )


# =============================================================================
# Client -> Server
# =============================================================================

@dataclass
class MoveRequest(Message):
    """Claim a new absolute position."""
    type: MessageType = MessageType.MOVE

    @classmethod
    def create(cls, x: int | float, y: int | float) -> "MoveRequest":
        return cls(data={"x": x, "y": y})


@dataclass
class ChatRequest(Message):
    """Send a chat line. The payload is the raw text."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, text: str) -> "ChatRequest":
        return cls(data=text)


# =============================================================================
# Server -> Client
# =============================================================================

@dataclass
class ErrorMessage(Message):
    """Error response message."""
    type: MessageType = MessageType.ERROR

    @classmethod
    def create(cls, message: str, code: ErrorCode | str = ErrorCode.PARSE_ERROR) -> "ErrorMessage":
        """Create an error message."""
        code = code.value if isinstance(code, ErrorCode) else code
        return cls(data={"message": message, "code": code})


@dataclass
class CurrentPlayerMessage(Message):
    """Sent once to a new connection with its own record."""
    type: MessageType = MessageType.CURRENT_PLAYER

    @classmethod
    def create(cls, record: PlayerRecord) -> "CurrentPlayerMessage":
        return cls(data=record.to_dict())


@dataclass
class PlayersUpdateMessage(Message):
    """Full snapshot of every connected player, keyed by connection id."""
    type: MessageType = MessageType.PLAYERS_UPDATE

    @classmethod
    def create(cls, snapshot: dict[str, dict]) -> "PlayersUpdateMessage":
        return cls(data=snapshot)


@dataclass
class ChatBroadcast(Message):
    """A chat line relayed to every connection."""
    type: MessageType = MessageType.CHAT

    @classmethod
    def create(cls, chat: ChatMessage) -> "ChatBroadcast":
        return cls(data=chat.to_dict())


# =============================================================================
# Payload helpers
# =============================================================================

def clamp(value: int | float, low: int | float, high: int | float) -> int | float:
    """Clamp value into [low, high], returning it untouched when already inside."""
    if value < low:
        return low
    if value > high:
        return high
    return value


def read_coordinate(value: Any) -> int | float:
    """
    Validate one untrusted coordinate.

    Accepts ints and floats, including infinities (they clamp to a bound).
    Rejects bools, NaN and everything else.

    Raises:
        ProtocolError: if the value is not a usable number
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProtocolError(f"Coordinate must be a number, got {type(value).__name__}")
    if isinstance(value, float) and math.isnan(value):
        raise ProtocolError("Coordinate must not be NaN")
    return value


def read_position(data: Any) -> tuple[int | float, int | float]:
    """
    Extract (x, y) from a move payload.

    Raises:
        ProtocolError: if the payload is not an object with numeric x and y
    """
    if not isinstance(data, dict):
        raise ProtocolError("Move payload must be an object")
    if "x" not in data or "y" not in data:
        raise ProtocolError("Move payload requires x and y")
    return read_coordinate(data["x"]), read_coordinate(data["y"])


def parse_message(json_str: str | bytes) -> Message:
    """
    Parse a JSON frame into a Message.

    Returns the base Message class; the handler uses the type field to
    decide how to read the payload.

    Raises:
        ProtocolError: if the frame is not a JSON object with a known type
    """
    return Message.from_json(json_str)
