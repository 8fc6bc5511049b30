"""
Client-side view of the players in the hub.

The server only ever sends full snapshots, so joins, departures and
movement have to be worked out by comparing each snapshot with the
previous one.
"""

from dataclasses import dataclass, field
from typing import Iterator

from tidal_shared.constants import PLAYER_COLORS
from tidal_shared.protocol import PlayerRecord


@dataclass
class RosterDiff:
    """What changed between two snapshots."""
    joined: list[PlayerRecord] = field(default_factory=list)
    left: list[PlayerRecord] = field(default_factory=list)
    moved: list[PlayerRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.joined or self.left or self.moved)


class Roster:
    """
    Read-only, possibly stale copy of the server's player map.

    Records are replaced wholesale on every snapshot; nothing here is
    authoritative.
    """

    def __init__(self):
        self._players: dict[str, PlayerRecord] = {}

    def apply(self, snapshot: dict[str, dict]) -> RosterDiff:
        """
        Replace the roster with a snapshot and report the difference.

        Entries that cannot be read as PlayerRecords are skipped.
        """
        incoming: dict[str, PlayerRecord] = {}
        for player_id, data in snapshot.items():
            try:
                incoming[player_id] = PlayerRecord.from_dict(data)
            except (KeyError, TypeError):
                continue

        diff = RosterDiff()
        for player_id, record in incoming.items():
            previous = self._players.get(player_id)
            if previous is None:
                diff.joined.append(record)
            elif (previous.x, previous.y) != (record.x, record.y):
                diff.moved.append(record)

        for player_id, record in self._players.items():
            if player_id not in incoming:
                diff.left.append(record)

        self._players = incoming
        return diff

    def clear(self) -> RosterDiff:
        """Forget every player, reporting them all as departed."""
        return self.apply({})

    def get(self, player_id: str) -> PlayerRecord | None:
        return self._players.get(player_id)

    def ids(self) -> set[str]:
        return set(self._players)

    @property
    def players(self) -> list[PlayerRecord]:
        return list(self._players.values())

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self._players

    def __iter__(self) -> Iterator[PlayerRecord]:
        return iter(list(self._players.values()))


def player_color(player_id: str) -> int:
    """
    Pick a stable avatar colour for a player id.

    Uses the 32-bit string hash browsers compute for the same ids, so
    every client agrees on each avatar's colour.
    """
    h = 0
    for ch in player_id:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h & 0x80000000:
        h -= 0x100000000
    return PLAYER_COLORS[abs(h) % len(PLAYER_COLORS)]
