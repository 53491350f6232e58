"""Requests and Response models of the tool front end"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chess_sessions.chess.game import Game
from chess_sessions.core.exceptions import InvalidRequestError
from chess_sessions.core.models import TimeControl
from chess_sessions.core.shared_types import (
    BoardFormat,
    Color,
    ExportFormat,
    MoveHistoryFormat,
    Status,
    TimeControlType,
)


class ToolModel(BaseModel):
    """Field names are snake_case in Python and camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- REQUEST MODELS ---
class TimeControlRequest(ToolModel):
    type: TimeControlType
    initial_time: Optional[int] = Field(default=None, ge=0)
    increment: Optional[int] = Field(default=None, ge=0)

    def to_time_control(self) -> TimeControl:
        return TimeControl(
            type=self.type, initial_time=self.initial_time, increment=self.increment
        )


class CreateGameRequest(ToolModel):
    white_player_id: str
    black_player_id: str
    time_control: Optional[TimeControlRequest] = None

    @field_validator("white_player_id", "black_player_id")
    @classmethod
    def validate_player_id(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("Player IDs cannot be empty.")
        return value


class GameIdRequest(ToolModel):
    game_id: str


class PlayerActionRequest(GameIdRequest):
    player_id: str


class MakeMoveRequest(PlayerActionRequest):
    move: str


class ValidateMoveRequest(GameIdRequest):
    move: str


class ListGamesRequest(ToolModel):
    status: Optional[Status] = None
    player_id: Optional[str] = None


class LegalMovesRequest(GameIdRequest):
    square: Optional[str] = None

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        def _is_algebraic_notation(value: str) -> bool:
            if len(value) != 2:
                return False

            file_character = value[0].lower()
            rank_character = value[1]
            return file_character in "abcdefgh" and rank_character in "12345678"

        if value is None:
            return value
        if not _is_algebraic_notation(value):
            raise InvalidRequestError(
                f"Cannot interpret square: {value!r} as a valid square name."
            )
        return value.lower()


class BoardStateRequest(GameIdRequest):
    format: BoardFormat = BoardFormat.VISUAL


class MoveHistoryRequest(GameIdRequest):
    format: MoveHistoryFormat = MoveHistoryFormat.ALGEBRAIC


class ExportGameRequest(GameIdRequest):
    format: ExportFormat = ExportFormat.PGN


class ImportMetadata(ToolModel):
    white_player_id: Optional[str] = None
    black_player_id: Optional[str] = None


class ImportGameRequest(ToolModel):
    pgn: str
    metadata: Optional[ImportMetadata] = None

    @field_validator("pgn")
    @classmethod
    def validate_pgn(cls, value: str) -> str:
        if not value.strip():
            raise InvalidRequestError("PGN cannot be empty.")
        return value


# --- RESPONSE MODELS ---
class GameSummary(ToolModel):
    game_id: str
    status: Status
    white_player_id: str
    black_player_id: str
    current_turn: Color
    move_history: list[str]
    fen: str
    result: Optional[str] = None
    draw_offer_from: Optional[str] = None
    pause_requested_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_game(cls, game: Game) -> "GameSummary":
        return cls(
            game_id=game.id,
            status=game.status,
            white_player_id=game.white_player_id,
            black_player_id=game.black_player_id,
            current_turn=game.turn,
            move_history=list(game.moves),
            fen=game.fen,
            result=game.result.value if game.result else None,
            draw_offer_from=game.draw_offer_from,
            pause_requested_by=game.pause_requested_by,
            created_at=game.created_at,
            updated_at=game.updated_at,
        )

    def to_data(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ToolResult(BaseModel):
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, data: Any = None) -> "ToolResult":
        return cls(success=False, error=error, data=data)

    def to_dict(self) -> dict[str, Any]:
        """`{success: true, data}` or `{success: false, error}` (plus data, if there is any)."""
        return self.model_dump(mode="json", exclude_none=True)
