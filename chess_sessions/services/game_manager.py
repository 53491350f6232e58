"""
Orchestration of the game lifecycle between callers, the Game domain object and the repository.

Every mutating call follows the same sandwich: load the record, let the Game change itself, store the result.
The manager never changes a Game's fields itself, and it lets every GameError raised by the Game pass through unchanged.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Iterator, Optional

from chess_sessions.chess.game import Game
from chess_sessions.chess.move_history import MoveHistory
from chess_sessions.core.config import SETTINGS
from chess_sessions.core.exceptions import (
    CapacityExceededError,
    CorruptStateError,
    NotFoundError,
)
from chess_sessions.core.models import (
    BoardState,
    DrawStatus,
    GameExport,
    GameImport,
    GameModel,
    MoveValidation,
    TimeControl,
)
from chess_sessions.core.shared_types import (
    BoardFormat,
    ExportFormat,
    GameResult,
    MoveHistoryFormat,
    Status,
)
from chess_sessions.db.repository import GameRepository

logger = logging.getLogger(__name__)


@dataclass
class _LockEntry:
    """Per-game lock plus the number of callers holding or waiting for it."""

    lock: Lock = field(default_factory=Lock)
    users: int = 0


class GameManager:
    """
    Orchestration of layers for chess games.
    ----

    * At most `max_concurrent_games` games can be ACTIVE at the same time. The count-then-save sequence of admission
      runs under one lock, so callers sharing this manager cannot overshoot the ceiling.
      (Separate processes sharing one database are not coordinated.)
    * Operations on the same game ID are serialized with a per-game lock, so two concurrent moves can never both
      load the pre-move state.
    """

    def __init__(
        self,
        repository: GameRepository,
        max_concurrent_games: Optional[int] = None,
    ) -> None:
        self.repo = repository
        if max_concurrent_games is None:
            max_concurrent_games = SETTINGS.max_concurrent_games
        self.max_concurrent_games = max_concurrent_games
        self._admission_lock = Lock()
        self._game_locks: dict[str, _LockEntry] = {}
        self._game_locks_guard = Lock()

    # -- Game lifecycle --
    def create_game(
        self,
        white_player_id: str,
        black_player_id: str,
        time_control: Optional[TimeControl] = None,
    ) -> Game:
        """Create and store a new active game, if the ceiling of active games allows it."""
        with self._admission_lock:
            self._assert_capacity()
            game = Game.new_game(white_player_id, black_player_id, time_control)
            self.repo.save_game(game.to_model())

        logger.info("Created game %s (%s vs %s)", game.id, white_player_id, black_player_id)
        return game

    def import_game(
        self,
        pgn: str,
        white_player_id: Optional[str] = None,
        black_player_id: Optional[str] = None,
    ) -> GameImport:
        """Store a game read from PGN. An unfinished import becomes an active game and needs a free slot."""
        game = Game.from_pgn(pgn, white_player_id, black_player_id)

        if game.status == Status.ACTIVE:
            with self._admission_lock:
                self._assert_capacity()
                self.repo.save_game(game.to_model())
        else:
            self.repo.save_game(game.to_model())

        logger.info("Imported game %s with %d move(s)", game.id, len(game.moves))
        return GameImport(
            game_id=game.id,
            moves=len(game.moves),
            final_position=game.fen,
            result=game.result.value if game.result else "*",
            status=game.status.value,
        )

    def get_game(self, game_id: str) -> Game | None:
        """Retrieve a game (None if unknown). A record that cannot be restored raises CorruptStateError."""
        model = self.repo.load_game(game_id)
        if model is None:
            return None
        return Game.from_model(model)

    def delete_game(self, game_id: str) -> bool:
        with self._game_lock(game_id):
            deleted = self.repo.delete_game(game_id)
        if deleted:
            logger.info("Deleted game %s", game_id)
        return deleted

    def game_exists(self, game_id: str) -> bool:
        return self.repo.game_exists(game_id)

    def list_all_games(self) -> list[Game]:
        return self._restore_all(self.repo.load_all_games())

    def list_games_by_status(self, status: Status) -> list[Game]:
        return self._restore_all(self.repo.load_games_by_status(Status(status)))

    def list_active_games(self) -> list[Game]:
        return self.list_games_by_status(Status.ACTIVE)

    def list_completed_games(self) -> list[Game]:
        return self.list_games_by_status(Status.COMPLETED)

    def list_player_games(self, player_id: str) -> list[Game]:
        return self._restore_all(self.repo.load_games_by_player(player_id))

    # -- Mutations (load -> change -> persist) --
    def make_move(self, game_id: str, move: str, player_id: Optional[str] = None) -> Game:
        """Play a move. The SAN of the move that got played is the last entry of the returned game's moves."""
        game = self._mutate(game_id, lambda game: game.apply_move(move, player_id))
        logger.debug("Game %s: %s played %s", game_id, player_id or "caller", game.moves[-1])
        return game

    def resign(self, game_id: str, player_id: str) -> Game:
        return self._mutate(game_id, lambda game: game.resign(player_id))

    def offer_draw(self, game_id: str, player_id: str) -> Game:
        return self._mutate(game_id, lambda game: game.offer_draw(player_id))

    def accept_draw(self, game_id: str, player_id: str) -> Game:
        return self._mutate(game_id, lambda game: game.accept_draw(player_id))

    def decline_draw(self, game_id: str, player_id: Optional[str] = None) -> Game:
        return self._mutate(game_id, lambda game: game.decline_draw(player_id))

    def pause(self, game_id: str, player_id: str) -> Game:
        return self._mutate(game_id, lambda game: game.pause(player_id))

    def resume(self, game_id: str) -> Game:
        return self._mutate(game_id, lambda game: game.resume())

    def complete_game(self, game_id: str, result: GameResult) -> Game:
        return self._mutate(game_id, lambda game: game.complete_game(GameResult(result)))

    # -- Read-only queries --
    def validate_move(self, game_id: str, move: str) -> MoveValidation:
        return self._fetch_game(game_id).validate_move(move)

    def legal_moves(self, game_id: str, square: Optional[str] = None) -> list[str]:
        return self._fetch_game(game_id).legal_moves(square)

    def move_history(
        self, game_id: str, fmt: MoveHistoryFormat = MoveHistoryFormat.ALGEBRAIC
    ) -> MoveHistory:
        return self._fetch_game(game_id).move_history(fmt)

    def draw_status(self, game_id: str) -> Optional[DrawStatus]:
        return self._fetch_game(game_id).get_draw_status()

    def board_state(self, game_id: str, fmt: BoardFormat = BoardFormat.VISUAL) -> BoardState:
        return self._fetch_game(game_id).board_state(fmt)

    def export_game(self, game_id: str, fmt: ExportFormat = ExportFormat.PGN) -> GameExport:
        return self._fetch_game(game_id).export(fmt)

    def is_healthy(self) -> bool:
        return self.repo.is_healthy()

    def close(self) -> None:
        self.repo.close()

    # -- Internal helpers --
    def _mutate(self, game_id: str, operation: Callable[[Game], object]) -> Game:
        """Load, change and persist one game while holding its lock."""
        with self._game_lock(game_id):
            game = self._fetch_game(game_id)
            operation(game)
            self.repo.save_game(game.to_model())
        return game

    def _fetch_game(self, game_id: str) -> Game:
        """Attempt to find the game in the repository and raise error if it fails."""
        game = self.get_game(game_id)
        if game is None:
            raise NotFoundError(f"Game not found: {game_id}")
        return game

    def _assert_capacity(self) -> None:
        """Must be called while holding the admission lock."""
        active_games = self.repo.count_active_games()
        if active_games >= self.max_concurrent_games:
            logger.warning(
                "Rejected new game: %d of %d active games", active_games, self.max_concurrent_games
            )
            raise CapacityExceededError(
                f"Maximum number of concurrent games ({self.max_concurrent_games}) reached"
            )

    def _restore_all(self, models: list[GameModel]) -> list[Game]:
        """Corrupt records are left out (and logged); they stay in storage until repaired."""
        games: list[Game] = []
        for model in models:
            try:
                games.append(Game.from_model(model))
            except CorruptStateError:
                logger.error("Skipping corrupt game record %s", model.id, exc_info=True)
        return games

    @contextmanager
    def _game_lock(self, game_id: str) -> Iterator[None]:
        """Serialize work on one game ID. The entry is dropped once nobody holds or waits for it."""
        with self._game_locks_guard:
            entry = self._game_locks.setdefault(game_id, _LockEntry())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._game_locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._game_locks[game_id]
