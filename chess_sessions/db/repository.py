"""Protocol repository: the storage contract the GameManager depends on (implemented in memory and with SQLAlchemy)."""

from typing import Protocol

from chess_sessions.core.models import GameModel
from chess_sessions.core.shared_types import Status


class GameRepository(Protocol):
    """
    Persistence layer orchestration.

    Every model handed out is an independent copy: mutating it never changes what is stored until save_game is called.
    """

    def save_game(self, game: GameModel) -> None:
        """Insert a new record or overwrite the existing one with the same ID."""
        ...

    def load_game(self, game_id: str) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def delete_game(self, game_id: str) -> bool:
        """Remove a game's record. False if there was nothing to remove."""
        ...

    def game_exists(self, game_id: str) -> bool:
        ...

    def load_all_games(self) -> list[GameModel]:
        ...

    def load_games_by_status(self, status: Status) -> list[GameModel]:
        ...

    def load_games_by_player(self, player_id: str) -> list[GameModel]:
        """Games in which the player plays either side."""
        ...

    def count_active_games(self) -> int:
        ...

    def is_healthy(self) -> bool:
        ...

    def close(self) -> None:
        """Release the underlying resources."""
        ...
