"""
Move history in the different shapes callers can ask for.

Every MoveHistoryFormat has its own result type; build_move_history picks the builder for the requested format.
All shapes are derived from the list of SAN moves by replaying them, so they can never disagree with each other.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ClassVar, Optional

from chess_sessions.chess import rules
from chess_sessions.core.shared_types import Color, MoveHistoryFormat


@dataclass(frozen=True)
class VerboseMove:
    move_number: int
    player: Color
    move: str
    timestamp: Optional[datetime]


@dataclass(frozen=True)
class PositionedMove:
    move_number: int
    move: str
    fen: str


@dataclass(frozen=True)
class DetailedMove:
    move_number: int
    move: str
    fen: str
    check: bool
    capture: bool
    castling: bool


@dataclass
class AlgebraicHistory:
    format: ClassVar[MoveHistoryFormat] = MoveHistoryFormat.ALGEBRAIC
    moves: list[str]


@dataclass
class UciHistory:
    format: ClassVar[MoveHistoryFormat] = MoveHistoryFormat.UCI
    moves: list[str]


@dataclass
class VerboseHistory:
    format: ClassVar[MoveHistoryFormat] = MoveHistoryFormat.VERBOSE
    entries: list[VerboseMove]


@dataclass
class FenHistory:
    format: ClassVar[MoveHistoryFormat] = MoveHistoryFormat.WITH_FEN
    entries: list[PositionedMove]


@dataclass
class DetailedHistory:
    format: ClassVar[MoveHistoryFormat] = MoveHistoryFormat.DETAILED
    entries: list[DetailedMove]


MoveHistory = AlgebraicHistory | UciHistory | VerboseHistory | FenHistory | DetailedHistory


def algebraic_history(moves: list[str], last_move_at: Optional[datetime]) -> AlgebraicHistory:
    return AlgebraicHistory(moves=list(moves))


def uci_history(moves: list[str], last_move_at: Optional[datetime]) -> UciHistory:
    return UciHistory(moves=rules.to_uci(moves))


def verbose_history(moves: list[str], last_move_at: Optional[datetime]) -> VerboseHistory:
    """Only the time of the last move is recorded, so every entry carries that timestamp."""
    return VerboseHistory(
        entries=[
            VerboseMove(
                move_number=index // 2 + 1,
                player=Color.WHITE if index % 2 == 0 else Color.BLACK,
                move=move,
                timestamp=last_move_at,
            )
            for index, move in enumerate(moves)
        ]
    )


def fen_history(moves: list[str], last_move_at: Optional[datetime]) -> FenHistory:
    board = rules.new_board()
    entries: list[PositionedMove] = []
    for index, move in enumerate(moves, start=1):
        rules.apply(board, move)
        entries.append(PositionedMove(move_number=index, move=move, fen=board.fen()))
    return FenHistory(entries=entries)


def detailed_history(moves: list[str], last_move_at: Optional[datetime]) -> DetailedHistory:
    board = rules.new_board()
    entries: list[DetailedMove] = []
    for index, move in enumerate(moves, start=1):
        # inspect the move BEFORE pushing it: capture/castling depend on the position it is played from
        parsed = rules.parse_move(board, move)
        capture = board.is_capture(parsed)
        castling = board.is_castling(parsed)
        board.push(parsed)
        entries.append(
            DetailedMove(
                move_number=index,
                move=move,
                fen=board.fen(),
                check=board.is_check(),
                capture=capture,
                castling=castling,
            )
        )
    return DetailedHistory(entries=entries)


_BUILDERS: dict[MoveHistoryFormat, Callable[[list[str], Optional[datetime]], MoveHistory]] = {
    MoveHistoryFormat.ALGEBRAIC: algebraic_history,
    MoveHistoryFormat.UCI: uci_history,
    MoveHistoryFormat.VERBOSE: verbose_history,
    MoveHistoryFormat.WITH_FEN: fen_history,
    MoveHistoryFormat.DETAILED: detailed_history,
}


def build_move_history(
    moves: list[str],
    fmt: MoveHistoryFormat = MoveHistoryFormat.ALGEBRAIC,
    last_move_at: Optional[datetime] = None,
) -> MoveHistory:
    return _BUILDERS[MoveHistoryFormat(fmt)](moves, last_move_at)
