"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from copy import deepcopy
from datetime import datetime, timezone
from threading import RLock
from typing import Optional

from sqlalchemy import Select, func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chess_sessions.core.exceptions import RepositoryError
from chess_sessions.core.models import GameModel
from chess_sessions.core.shared_types import Status
from chess_sessions.db.schema import DBGame

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session
        # a Session must not be used from several threads at once
        self._lock = RLock()

    def save_game(self, game: GameModel) -> None:
        """Insert a new record or overwrite the existing one with the same ID."""
        with self._lock:
            game_db = self._fetch_game(game.id)
            if game_db is None:
                game_db = DBGame(id=game.id)
                self.db.add(game_db)
            self._copy_into(game_db, game)
            self._commit()

    def load_game(self, game_id: str) -> GameModel | None:
        """Get game by ID, if record exists."""
        with self._lock:
            game_db = self._fetch_game(game_id)
            if game_db:
                return self._to_model(game_db)
            return None

    def delete_game(self, game_id: str) -> bool:
        """Remove a game's record."""
        with self._lock:
            game_db = self._fetch_game(game_id)
            if not game_db:
                return False
            self.db.delete(game_db)
            self._commit()
            return True

    def game_exists(self, game_id: str) -> bool:
        with self._lock:
            query = select(DBGame.id).where(DBGame.id == game_id).limit(1)
            return self.db.scalar(query) is not None

    def load_all_games(self) -> list[GameModel]:
        query = select(DBGame).order_by(DBGame.updated_at.desc())
        return self._load_many(query)

    def load_games_by_status(self, status: Status) -> list[GameModel]:
        query = (
            select(DBGame)
            .where(DBGame.status == Status(status).value)
            .order_by(DBGame.updated_at.desc())
        )
        return self._load_many(query)

    def load_games_by_player(self, player_id: str) -> list[GameModel]:
        query = (
            select(DBGame)
            .where(
                or_(
                    DBGame.white_player_id == player_id,
                    DBGame.black_player_id == player_id,
                )
            )
            .order_by(DBGame.updated_at.desc())
        )
        return self._load_many(query)

    def count_active_games(self) -> int:
        with self._lock:
            query = (
                select(func.count())
                .select_from(DBGame)
                .where(DBGame.status == Status.ACTIVE.value)
            )
            return self.db.scalar(query) or 0

    def is_healthy(self) -> bool:
        with self._lock:
            try:
                self.db.execute(text("SELECT 1"))
            except SQLAlchemyError:
                logger.warning("Database health check failed", exc_info=True)
                return False
            return True

    def close(self) -> None:
        with self._lock:
            self.db.close()

    # -- Internal helpers --
    def _fetch_game(self, game_id: str) -> DBGame | None:
        query = select(DBGame).where(DBGame.id == game_id)
        return self.db.scalar(query)

    def _load_many(self, query: Select[tuple[DBGame]]) -> list[GameModel]:
        with self._lock:
            return [self._to_model(game_db) for game_db in self.db.scalars(query)]

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as error:
            self.db.rollback()
            raise RepositoryError(f"Could not write to the database: {error}") from error

    @staticmethod
    def _copy_into(game_db: DBGame, game: GameModel) -> None:
        """Convert data transfer model into the SQLAlchemy model (in place)."""
        game_db.white_player_id = game.white_player_id
        game_db.black_player_id = game.black_player_id
        game_db.fen = game.fen
        game_db.pgn = game.pgn
        game_db.status = game.status
        game_db.move_history = list(game.move_history)
        game_db.position_history = dict(game.position_history)
        game_db.result = game.result
        game_db.termination = game.termination
        game_db.draw_details = deepcopy(game.draw_details)
        game_db.time_control = deepcopy(game.time_control)
        game_db.white_time_remaining = game.white_time_remaining
        game_db.black_time_remaining = game.black_time_remaining
        game_db.draw_offer_from = game.draw_offer_from
        game_db.pause_requested_by = game.pause_requested_by
        game_db.created_at = game.created_at
        game_db.updated_at = game.updated_at
        game_db.last_move_at = game.last_move_at

    @staticmethod
    def _to_model(game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameModel(
            id=game_db.id,
            white_player_id=game_db.white_player_id,
            black_player_id=game_db.black_player_id,
            fen=game_db.fen,
            pgn=game_db.pgn,
            status=game_db.status,
            created_at=_as_utc(game_db.created_at),
            updated_at=_as_utc(game_db.updated_at),
            move_history=list(game_db.move_history or []),
            position_history=dict(game_db.position_history or {}),
            result=game_db.result,
            termination=game_db.termination,
            draw_details=deepcopy(game_db.draw_details),
            time_control=deepcopy(game_db.time_control),
            last_move_at=_as_utc(game_db.last_move_at),
            white_time_remaining=game_db.white_time_remaining,
            black_time_remaining=game_db.black_time_remaining,
            draw_offer_from=game_db.draw_offer_from,
            pause_requested_by=game_db.pause_requested_by,
        )


def _as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; every timestamp in the domain is UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)
