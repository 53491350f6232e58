"""
Boundary to the rules engine (python-chess).

Move legality, move application, end-of-game detection and PGN encoding/decoding all happen in python-chess.
The rest of the domain layer only talks to the functions below, so it never needs to know how a chess rule works.
"""

import io
import re
from dataclasses import dataclass, field
from typing import Optional

import chess
import chess.pgn

from chess_sessions.core.exceptions import (
    CorruptStateError,
    InvalidMoveError,
    InvalidRequestError,
)
from chess_sessions.core.models import MoveValidation
from chess_sessions.core.shared_types import Color, DrawType, GameEndReason, GameResult

Board = chess.Board

STARTING_FEN = chess.STARTING_FEN
NOTATION_HINT = "Use algebraic notation (e.g., e4, Nf3, O-O) or UCI format (e.g., e2e4)"
MAX_SUGGESTIONS = 5

UCI_PATTERN = re.compile(r"^[a-h][1-8][a-h][1-8][qrbn]?$")
CASTLING_ALIASES = {
    "0-0": "O-O",
    "0-0-0": "O-O-O",
    "o-o": "O-O",
    "o-o-o": "O-O-O",
}


@dataclass(frozen=True)
class GameEnd:
    """Verdict of the rules engine once no more moves should be played."""

    result: GameResult
    reason: GameEndReason
    draw_type: Optional[DrawType] = None
    description: str = ""


@dataclass
class ParsedPgn:
    headers: dict[str, str]
    moves: list[str] = field(default_factory=list)


# (termination, reason, draw type, description) of automatic draws
_AUTOMATIC_DRAWS: dict[chess.Termination, tuple[GameEndReason, DrawType, str]] = {
    chess.Termination.STALEMATE: (
        GameEndReason.STALEMATE,
        DrawType.STALEMATE,
        "Draw by stalemate",
    ),
    chess.Termination.INSUFFICIENT_MATERIAL: (
        GameEndReason.INSUFFICIENT_MATERIAL,
        DrawType.INSUFFICIENT_MATERIAL,
        "Draw by insufficient material",
    ),
    chess.Termination.SEVENTYFIVE_MOVES: (
        GameEndReason.SEVENTY_FIVE_MOVE_RULE,
        DrawType.SEVENTY_FIVE_MOVE,
        "Draw by the seventy-five move rule",
    ),
    chess.Termination.FIVEFOLD_REPETITION: (
        GameEndReason.FIVEFOLD_REPETITION,
        DrawType.FIVEFOLD_REPETITION,
        "Draw by fivefold repetition",
    ),
}


def new_board() -> Board:
    return chess.Board()


def replay(moves: list[str]) -> Board:
    """Rebuild the engine state by replaying SAN moves from the standard starting position."""
    board = new_board()
    for index, move_text in enumerate(moves, start=1):
        try:
            move = parse_move(board, move_text)
        except InvalidMoveError as error:
            raise CorruptStateError(
                f"Move {index} ({move_text!r}) of the recorded history cannot be replayed: {error}"
            ) from error
        board.push(move)
    return board


def parse_move(board: Board, text: str) -> chess.Move:
    """
    Interpret a move in SAN (e4, Nf3, O-O, e8=Q) or UCI (e2e4, e7e8q) for the given position.
    ----

    Raises InvalidMoveError when the text cannot be read as a move, or when the move is not legal here.
    """
    token = text.strip()
    if not token:
        raise InvalidMoveError("Invalid notation: empty move", suggestion=NOTATION_HINT)

    without_check = token.rstrip("+#")
    if without_check.lower() in CASTLING_ALIASES:
        token = CASTLING_ALIASES[without_check.lower()]

    if UCI_PATTERN.fullmatch(token.lower()):
        try:
            move = chess.Move.from_uci(token.lower())
        except chess.InvalidMoveError as error:
            # e.g. e2e2: right shape, but no move at all
            raise InvalidMoveError(
                f"Invalid notation: {error}", suggestion=NOTATION_HINT
            ) from error
        if move in board.legal_moves:
            return move
        raise _illegal(board, text)

    try:
        move = board.parse_san(token)
    except chess.IllegalMoveError:
        raise _illegal(board, text) from None
    except chess.AmbiguousMoveError as error:
        raise InvalidMoveError(
            f"Move {text!r} is ambiguous: {error}", suggestion=suggest(board)
        ) from error
    except chess.InvalidMoveError as error:
        raise InvalidMoveError(
            f"Invalid notation: {error}", suggestion=NOTATION_HINT
        ) from error

    # parse_san reads '--' and friends as a null move
    if not move:
        raise InvalidMoveError(
            f"Invalid notation: null move {text!r}", suggestion=NOTATION_HINT
        )
    return move


def validate(board: Board, text: str) -> MoveValidation:
    """Dry run of parse_move. Nothing is pushed onto the board."""
    try:
        parse_move(board, text)
    except InvalidMoveError as error:
        return MoveValidation(valid=False, reason=str(error), suggestion=error.suggestion)
    return MoveValidation(valid=True)


def apply(board: Board, text: str) -> str:
    """Push the move onto the board and return its SAN. The board is untouched if the move gets rejected."""
    move = parse_move(board, text)
    san = board.san(move)
    board.push(move)
    return san


def _illegal(board: Board, text: str) -> InvalidMoveError:
    return InvalidMoveError(
        f'Move "{text}" is not legal in current position', suggestion=suggest(board)
    )


def suggest(board: Board) -> str:
    """Short list of legal alternatives in the position."""
    moves = legal_moves(board)
    if not moves:
        return "No legal moves available"
    shown = ", ".join(moves[:MAX_SUGGESTIONS])
    ellipsis = "..." if len(moves) > MAX_SUGGESTIONS else ""
    return f"Try one of: {shown}{ellipsis}"


def legal_moves(board: Board, square: Optional[str] = None) -> list[str]:
    """Legal moves in SAN. Optionally only those starting on one square (unknown square -> no moves)."""
    if square is None:
        return [board.san(move) for move in board.legal_moves]

    try:
        from_square = chess.parse_square(square.strip().lower())
    except ValueError:
        return []
    return [
        board.san(move) for move in board.legal_moves if move.from_square == from_square
    ]


def game_end(board: Board) -> Optional[GameEnd]:
    """
    Ask the engine whether the game is over after the last move.
    ----

    Threefold repetition is only claimable, so it is NOT reported here (callers see it in the draw status).
    The fifty-move rule does end the game automatically.
    """
    outcome = board.outcome()
    if outcome is None:
        if board.is_fifty_moves():
            return GameEnd(
                result=GameResult.DRAW,
                reason=GameEndReason.FIFTY_MOVE_RULE,
                draw_type=DrawType.FIFTY_MOVE,
                description="Draw by the fifty-move rule",
            )
        return None

    if outcome.termination == chess.Termination.CHECKMATE:
        winner = GameResult.WHITE_WINS if outcome.winner == chess.WHITE else GameResult.BLACK_WINS
        return GameEnd(
            result=winner,
            reason=GameEndReason.CHECKMATE,
            description="Checkmate",
        )

    reason, draw_type, description = _AUTOMATIC_DRAWS[outcome.termination]
    return GameEnd(
        result=GameResult.DRAW,
        reason=reason,
        draw_type=draw_type,
        description=description,
    )


def turn(fen: str) -> Color:
    """Side to move, read from the FEN."""
    return Color.WHITE if fen.split(" ")[1] == "w" else Color.BLACK


def position_key(fen: str) -> str:
    """Placement, side to move, castling rights and en passant target. Move counters are dropped."""
    return " ".join(fen.split(" ")[:4])


def halfmove_clock(fen: str) -> int:
    parts = fen.split(" ")
    if len(parts) < 5:
        return 0
    return int(parts[4])


def to_uci(moves: list[str]) -> list[str]:
    board = new_board()
    uci_moves: list[str] = []
    for san in moves:
        move = board.parse_san(san)
        uci_moves.append(move.uci())
        board.push(move)
    return uci_moves


def to_pgn(moves: list[str], headers: dict[str, str]) -> str:
    """Full PGN transcript, always generated from scratch out of the SAN moves."""
    game = chess.pgn.Game()
    for key, value in headers.items():
        game.headers[key] = value

    node: chess.pgn.GameNode = game
    board = game.board()
    for san in moves:
        move = board.parse_san(san)
        node = node.add_variation(move)
        board.push(move)

    exporter = chess.pgn.StringExporter(headers=True, variations=False, comments=False)
    return game.accept(exporter)


def read_pgn(text: str) -> ParsedPgn:
    """Decode a PGN transcript into its headers and SAN moves."""
    game = chess.pgn.read_game(io.StringIO(text))
    if game is None:
        raise InvalidRequestError("Invalid PGN format")
    if "FEN" in game.headers or game.headers.get("SetUp") == "1":
        raise InvalidRequestError(
            "PGN games starting from a custom position are not supported"
        )
    if game.errors:
        raise InvalidMoveError(f"Invalid move in PGN: {game.errors[0]}")

    board = game.board()
    moves: list[str] = []
    for move in game.mainline_moves():
        moves.append(board.san(move))
        board.push(move)
    return ParsedPgn(headers=dict(game.headers), moves=moves)


def ascii_board(board: Board) -> str:
    return str(board)
