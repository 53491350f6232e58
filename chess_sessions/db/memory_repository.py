"""Implementation of (Game)Repository keeping the records in a dictionary."""

import logging
from copy import deepcopy
from threading import RLock

from chess_sessions.core.models import GameModel
from chess_sessions.core.shared_types import Status

logger = logging.getLogger(__name__)


class InMemoryGameRepository:
    """Data stored in process memory. Deep copies go in and out, so callers never share a record with the store."""

    def __init__(self) -> None:
        self._games: dict[str, GameModel] = {}
        self._lock = RLock()

    def save_game(self, game: GameModel) -> None:
        with self._lock:
            self._games[game.id] = deepcopy(game)

    def load_game(self, game_id: str) -> GameModel | None:
        with self._lock:
            game = self._games.get(game_id)
            return deepcopy(game) if game is not None else None

    def delete_game(self, game_id: str) -> bool:
        with self._lock:
            return self._games.pop(game_id, None) is not None

    def game_exists(self, game_id: str) -> bool:
        with self._lock:
            return game_id in self._games

    def load_all_games(self) -> list[GameModel]:
        with self._lock:
            return [deepcopy(game) for game in self._games.values()]

    def load_games_by_status(self, status: Status) -> list[GameModel]:
        return [game for game in self.load_all_games() if game.status == status]

    def load_games_by_player(self, player_id: str) -> list[GameModel]:
        return [
            game
            for game in self.load_all_games()
            if player_id in (game.white_player_id, game.black_player_id)
        ]

    def count_active_games(self) -> int:
        with self._lock:
            return sum(1 for game in self._games.values() if game.status == Status.ACTIVE)

    def is_healthy(self) -> bool:
        return True

    def close(self) -> None:
        with self._lock:
            logger.debug("Dropping %d in-memory game record(s)", len(self._games))
            self._games.clear()

    def __len__(self) -> int:
        return len(self._games)
