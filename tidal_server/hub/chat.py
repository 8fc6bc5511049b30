"""
Chat line validation and timestamping.
"""
from datetime import datetime
from typing import Any

from tidal_shared.protocol import ChatMessage, PlayerRecord


def format_timestamp(now: datetime | None = None) -> str:
    """
    Render a local wall-clock time the way chat panels show it, e.g. 3:04:05 PM.

    The AM/PM marker comes from %p and so follows the process locale; only
    the C and English locales produce exactly AM or PM.
    """
    now = now or datetime.now()
    hour = now.hour % 12 or 12
    return f"{hour}:{now:%M:%S %p}"


def build_chat_message(
    sender: PlayerRecord,
    raw: Any,
    now: datetime | None = None
) -> ChatMessage | None:
    """
    Turn a raw chat payload into a relayable ChatMessage.

    Returns:
        The message, or None if raw is not a string or is blank after trimming
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not text:
        return None

    return ChatMessage(
        player=sender.name,
        message=text,
        timestamp=format_timestamp(now),
    )
