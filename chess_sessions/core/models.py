"""
Boundary layer data model(s).

These objects are used to communicate with the Service.
Both the persistence layer (lower) and the tool front end (higher) exchange models defined here with the Service,
which decouples the DB representation from the domain representation of a game.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from chess_sessions.core.shared_types import DrawType, TimeControlType

# Type aliases to make GameModel easier to read
PlayerId = str
PositionKey = str


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between the Service, the Game and the repositories.

    Only plain values (str, int, list, dict, datetime) so that every repository can store it as-is.
    """

    id: str
    white_player_id: PlayerId
    black_player_id: PlayerId
    fen: str
    pgn: str
    status: str
    created_at: datetime
    updated_at: datetime
    move_history: list[str] = field(default_factory=list)
    position_history: dict[PositionKey, int] = field(default_factory=dict)
    result: Optional[str] = None
    draw_details: Optional[dict[str, str]] = None
    termination: Optional[str] = None
    time_control: Optional[dict[str, Any]] = None
    last_move_at: Optional[datetime] = None
    white_time_remaining: Optional[int] = None
    black_time_remaining: Optional[int] = None
    draw_offer_from: Optional[PlayerId] = None
    pause_requested_by: Optional[PlayerId] = None


@dataclass(frozen=True)
class TimeControl:
    """Time control agreed on at creation. Times are in seconds; None means not specified (not zero)."""

    type: TimeControlType
    initial_time: Optional[int] = None
    increment: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "initial_time": self.initial_time,
            "increment": self.increment,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeControl":
        return cls(
            type=TimeControlType(data["type"]),
            initial_time=data.get("initial_time"),
            increment=data.get("increment"),
        )


@dataclass(frozen=True)
class DrawDetails:
    type: DrawType
    description: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type.value, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> "DrawDetails":
        return cls(type=DrawType(data["type"]), description=data["description"])


@dataclass(frozen=True)
class DrawStatus:
    """Advisory draw bookkeeping for an active game. Not an adjudication."""

    halfmove_clock: int
    moves_until_fifty_move: int
    repetition_count: int
    is_approaching_fifty_move: bool
    is_approaching_repetition: bool


@dataclass(frozen=True)
class MoveValidation:
    valid: bool
    reason: Optional[str] = None
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class GameExport:
    game_id: str
    format: str
    content: str
    metadata: dict[str, str]


@dataclass(frozen=True)
class GameImport:
    game_id: str
    moves: int
    final_position: str
    result: str
    status: str


@dataclass(frozen=True)
class BoardState:
    game_id: str
    format: str
    board: str
    current_turn: str
    is_check: bool
    status: str
