"""
Custom exceptions raised by the domain and service layers.

Everything derives from GameError so that the outer layer (the tool front end) can catch a single type
and report the message. Layers in between propagate these unchanged.
"""

from typing import Optional


class GameError(Exception):
    """Top-level exception for anything that goes wrong with a game."""


class RepositoryError(GameError):
    """Persistence layer could not deliver what was asked."""


class NotFoundError(RepositoryError):
    """No game is stored under the requested ID."""


class IllegalStateError(GameError):
    """The operation is not allowed in the game's current status."""


class NotYourTurnError(IllegalStateError):
    """A player tried to move while it is the opponent's turn."""


class UnknownParticipantError(IllegalStateError):
    """The player ID does not belong to either side of the game."""


class InvalidMoveError(GameError):
    """The rules engine rejected a move."""

    def __init__(self, message: str, suggestion: Optional[str] = None) -> None:
        super().__init__(message)
        self.suggestion = suggestion


class CapacityExceededError(GameError):
    """The maximum number of concurrently active games has been reached."""


class CorruptStateError(GameError):
    """A stored record cannot be restored (its move list does not replay)."""


class InvalidRequestError(GameError):
    """Request data is malformed before it even reaches the game logic."""
