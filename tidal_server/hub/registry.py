"""
Connection registry: the authoritative map of connected players.

Every method is synchronous. Handlers run on a single event loop and
never await between reading and writing the map, so each call is atomic
with respect to every other connection's handler.
"""

import logging
import random

from tidal_server.errors import DuplicateConnectionError
from tidal_shared.constants import (
    MIN_X, MAX_X, MIN_Y, MAX_Y,
    SPAWN_MIN_X, SPAWN_MAX_X, SPAWN_MIN_Y, SPAWN_MAX_Y,
    NAME_PREFIX, NAME_SUFFIX_LIMIT,
)
from tidal_shared.protocol import PlayerRecord, clamp


logger = logging.getLogger(__name__)


class PlayerRegistry:
    """
    Maps connection ids to PlayerRecords.

    A record is created once when its connection opens, moved only by
    that connection's position updates, and removed once when it closes.
    """

    def __init__(self, seed: int | None = None):
        """
        Args:
            seed: Optional seed for reproducible spawns and names (useful for testing)
        """
        self._players: dict[str, PlayerRecord] = {}
        self._random = random.Random(seed)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def on_connect(self, connection_id: str) -> PlayerRecord:
        """
        Create the record for a newly opened connection.

        The spawn point lies strictly inside the playable bounds and the
        display name is Player0..Player999.

        Raises:
            DuplicateConnectionError: if connection_id is already registered
        """
        if connection_id in self._players:
            raise DuplicateConnectionError(connection_id)

        record = PlayerRecord(
            id=connection_id,
            x=self._random.randrange(SPAWN_MIN_X, SPAWN_MAX_X),
            y=self._random.randrange(SPAWN_MIN_Y, SPAWN_MAX_Y),
            name=f"{NAME_PREFIX}{self._random.randrange(NAME_SUFFIX_LIMIT)}",
        )
        self._players[connection_id] = record

        logger.info(f"Registered {record.name} ({connection_id}) at ({record.x}, {record.y})")
        return record

    def on_disconnect(self, connection_id: str) -> PlayerRecord | None:
        """
        Remove a connection's record.

        Returns:
            The removed record, or None if it was already gone
        """
        record = self._players.pop(connection_id, None)
        if record is not None:
            logger.info(f"Unregistered {record.name} ({connection_id})")
        return record

    # =========================================================================
    # Mutation
    # =========================================================================

    def update_position(
        self,
        connection_id: str,
        x: int | float,
        y: int | float
    ) -> PlayerRecord | None:
        """
        Store a clamped position for a connection.

        Returns:
            The updated record, or None if the connection is not registered
        """
        record = self._players.get(connection_id)
        if record is None:
            return None

        record.x = clamp(x, MIN_X, MAX_X)
        record.y = clamp(y, MIN_Y, MAX_Y)
        return record

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, connection_id: str) -> PlayerRecord | None:
        """Get the record for a connection."""
        return self._players.get(connection_id)

    def snapshot(self) -> dict[str, dict]:
        """
        Copy the whole map as plain dicts.

        The copy is taken in one step and shares nothing with the live
        records, so it may be serialized after later mutations.
        """
        return {
            connection_id: record.to_dict()
            for connection_id, record in self._players.items()
        }

    def connection_ids(self) -> set[str]:
        """Get the ids of all registered connections."""
        return set(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._players
