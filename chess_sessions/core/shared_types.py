"""
Type definitions used across layers
"""

from datetime import datetime, timezone
from enum import StrEnum


class Status(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class GameResult(StrEnum):
    """PGN result tokens."""

    WHITE_WINS = "1-0"
    BLACK_WINS = "0-1"
    DRAW = "1/2-1/2"


class DrawType(StrEnum):
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    FIFTY_MOVE = "fifty_move"
    SEVENTY_FIVE_MOVE = "seventy_five_move"
    FIVEFOLD_REPETITION = "fivefold_repetition"
    AGREEMENT = "agreement"


class GameEndReason(StrEnum):
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient_material"
    FIFTY_MOVE_RULE = "fifty_move_rule"
    SEVENTY_FIVE_MOVE_RULE = "seventy_five_move_rule"
    FIVEFOLD_REPETITION = "fivefold_repetition"
    DRAW_AGREEMENT = "draw_agreement"
    RESIGNATION = "resignation"


class TimeControlType(StrEnum):
    UNLIMITED = "unlimited"
    FIXED = "fixed"
    FISCHER = "fischer"


class MoveHistoryFormat(StrEnum):
    ALGEBRAIC = "algebraic"
    UCI = "UCI"
    VERBOSE = "verbose"
    WITH_FEN = "with_fen"
    DETAILED = "detailed"


class ExportFormat(StrEnum):
    PGN = "PGN"
    FEN = "FEN"


class BoardFormat(StrEnum):
    VISUAL = "visual"
    FEN = "FEN"
    PGN = "PGN"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
