"""
Message handler for routing client messages to hub actions.

Parses incoming frames, validates their payloads, applies them to the
registry, and says what must be sent as a result. Sending is left to
the server so that all fan-out goes through the dispatcher.
"""

import logging
from dataclasses import dataclass
from typing import Any

from tidal_server.hub import PlayerRegistry, build_chat_message
from tidal_shared.protocol import (
    Message,
    ErrorMessage,
    ChatBroadcast,
    ProtocolError,
    parse_message,
    read_position,
)
from tidal_shared.enums import MessageType, ErrorCode


logger = logging.getLogger(__name__)


@dataclass
class HandleResult:
    """Result of handling a message."""
    # Response to send back to the requesting connection only
    response: Message | None = None
    # Messages to broadcast to every connection
    broadcasts: list[Message] | None = None
    # Whether to broadcast the full player snapshot after this action
    broadcast_state: bool = False


class MessageHandler:
    """
    Routes incoming messages to the position and chat handlers.

    Messages from a connection with no registry entry are dropped: they
    can arrive after the disconnect was already processed.
    """

    def __init__(self, registry: PlayerRegistry):
        self._registry = registry

    async def handle_message(
        self,
        connection_id: str,
        message: Message | str | bytes | dict
    ) -> HandleResult:
        """
        Handle an incoming message from a connection.

        Args:
            connection_id: ID of the connection sending the message
            message: The message (Message object, JSON frame, or dict)

        Returns:
            HandleResult with response and broadcasts
        """
        if not isinstance(message, Message):
            try:
                if isinstance(message, dict):
                    message = Message.from_dict(message)
                else:
                    message = parse_message(message)
            except ProtocolError as e:
                logger.warning(f"Rejected frame from {connection_id}: {e}")
                return HandleResult(response=ErrorMessage.create(str(e), e.code))

        handler = self._get_handler(message.type)
        if not handler:
            logger.warning(f"Unexpected {message.type.value!r} frame from {connection_id}")
            return HandleResult(
                response=ErrorMessage.create(
                    f"Unknown message type: {message.type.value}",
                    ErrorCode.UNKNOWN_MESSAGE_TYPE
                )
            )

        try:
            return await handler(connection_id, message.data)
        except Exception as e:
            logger.exception(f"Error handling {message.type.value!r} from {connection_id}: {e}")
            return HandleResult(
                response=ErrorMessage.create(f"Internal error: {e}", ErrorCode.INTERNAL_ERROR)
            )

    def _get_handler(self, message_type: MessageType):
        """Get the handler method for a server-bound message type."""
        handlers = {
            MessageType.MOVE: self._handle_move,
            MessageType.CHAT: self._handle_chat,
        }
        return handlers.get(message_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _handle_move(self, connection_id: str, data: Any) -> HandleResult:
        """Handle a position update: clamp, store, broadcast."""
        if connection_id not in self._registry:
            logger.debug(f"Dropped move from unregistered connection {connection_id}")
            return HandleResult()

        try:
            x, y = read_position(data)
        except ProtocolError as e:
            logger.warning(f"Dropped malformed move from {connection_id}: {e}")
            return HandleResult()

        self._registry.update_position(connection_id, x, y)

        return HandleResult(broadcast_state=True)

    async def _handle_chat(self, connection_id: str, data: Any) -> HandleResult:
        """Handle a chat line: trim, timestamp, relay to everyone."""
        sender = self._registry.get(connection_id)
        if sender is None:
            logger.debug(f"Dropped chat from unregistered connection {connection_id}")
            return HandleResult()

        if not isinstance(data, str):
            logger.warning(
                f"Dropped chat from {connection_id}: payload is {type(data).__name__}, not text"
            )
            return HandleResult()

        chat = build_chat_message(sender, data)
        if chat is None:
            return HandleResult()

        logger.debug(f"Chat from {sender.name}: {chat.message!r}")
        return HandleResult(broadcasts=[ChatBroadcast.create(chat)])
