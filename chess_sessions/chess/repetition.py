"""
Bookkeeping of how often each position occurred during a game.

The rules engine forgets the history whenever a game is rebuilt from a FEN, so the game keeps its own count
keyed on the position fingerprint (see rules.position_key).
"""

from collections import Counter
from typing import Self

from chess_sessions.chess.rules import position_key


class PositionHistory:
    """Mapping of position fingerprint -> number of occurrences."""

    def __init__(self, counts: dict[str, int] | None = None) -> None:
        self._counts: Counter[str] = Counter(counts or {})

    @classmethod
    def starting_from(cls, fen: str) -> Self:
        """Seed the history with the opening position, which has occurred once."""
        history = cls()
        history.record(fen)
        return history

    def record(self, fen: str) -> int:
        """Count one more occurrence of the position and return the new count."""
        key = position_key(fen)
        self._counts[key] += 1
        return self._counts[key]

    def count(self, fen: str) -> int:
        return self._counts.get(position_key(fen), 0)

    def to_dict(self) -> dict[str, int]:
        return dict(self._counts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PositionHistory):
            return NotImplemented
        return self._counts == other._counts

    def __len__(self) -> int:
        return len(self._counts)
