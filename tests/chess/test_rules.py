"""Unit tests for chess_sessions/chess/rules.py"""

import pytest

from chess_sessions.chess import rules
from chess_sessions.core.exceptions import (
    CorruptStateError,
    InvalidMoveError,
    InvalidRequestError,
)
from chess_sessions.core.shared_types import Color, DrawType, GameEndReason, GameResult

STALEMATE_FEN = "k7/8/1Q6/8/8/8/8/K7 b - - 0 1"
BARE_KINGS_FEN = "k7/8/8/8/8/8/8/K7 w - - 0 1"
FIFTY_MOVES_FEN = "k7/8/8/8/8/8/8/K6R w - - 100 80"
# knights on b1 and f1 can both reach d2
AMBIGUOUS_KNIGHTS_FEN = "4k3/8/8/8/8/8/8/1N2KN2 w - - 0 1"
PROMOTION_FEN = "8/4P3/8/8/8/8/k7/4K3 w - - 0 1"


# --- PARSING MOVES ----
@pytest.mark.parametrize("notation", ["e4", "e2e4", "E2E4", " e4 "])
def test_parse_move_accepts_san_and_uci(notation: str) -> None:
    """SAN and UCI are interchangeable for input."""
    board = rules.new_board()
    move = rules.parse_move(board, notation)
    assert move.uci() == "e2e4"


@pytest.mark.parametrize("notation", ["0-0", "o-o", "O-O"])
def test_castling_aliases(notation: str) -> None:
    """Zeros and lowercase letters are read as castling as well."""
    board = rules.new_board()
    for move in ["e4", "e5", "Nf3", "Nc6", "Bc4", "Bc5"]:
        rules.apply(board, move)

    assert rules.apply(board, notation) == "O-O"


def test_castling_alias_not_legal_at_start() -> None:
    board = rules.new_board()
    with pytest.raises(InvalidMoveError, match='Move "0-0" is not legal in current position'):
        rules.parse_move(board, "0-0")


def test_illegal_move_comes_with_suggestion() -> None:
    board = rules.new_board()
    with pytest.raises(InvalidMoveError) as error:
        rules.parse_move(board, "e5")

    assert str(error.value) == 'Move "e5" is not legal in current position'
    assert error.value.suggestion is not None
    assert error.value.suggestion.startswith("Try one of: ")
    assert error.value.suggestion.endswith("...")


def test_illegal_uci_move() -> None:
    """Correct UCI syntax, but a pawn cannot jump three squares."""
    board = rules.new_board()
    with pytest.raises(InvalidMoveError, match="not legal"):
        rules.parse_move(board, "e2e5")


@pytest.mark.parametrize("notation", ["", "   ", "xyz", "Qz9", "e2e2", "a1a1"])
def test_unreadable_notation(notation: str) -> None:
    board = rules.new_board()
    with pytest.raises(InvalidMoveError, match="Invalid notation") as error:
        rules.parse_move(board, notation)
    assert error.value.suggestion == rules.NOTATION_HINT


def test_null_move_is_rejected() -> None:
    board = rules.new_board()
    with pytest.raises(InvalidMoveError, match="null move"):
        rules.parse_move(board, "--")


def test_ambiguous_move() -> None:
    board = rules.Board(AMBIGUOUS_KNIGHTS_FEN)
    with pytest.raises(InvalidMoveError, match="ambiguous"):
        rules.parse_move(board, "Nd2")

    assert rules.apply(board, "Nbd2") == "Nbd2"


def test_promotion_in_uci() -> None:
    board = rules.Board(PROMOTION_FEN)
    assert rules.apply(board, "e7e8q").startswith("e8=Q")


# --- APPLYING / VALIDATING ----
def test_apply_returns_san_and_pushes() -> None:
    board = rules.new_board()
    assert rules.apply(board, "g1f3") == "Nf3"
    assert rules.turn(board.fen()) == Color.BLACK


def test_rejected_move_leaves_board_untouched() -> None:
    board = rules.new_board()
    with pytest.raises(InvalidMoveError):
        rules.apply(board, "Ke2")
    assert board.fen() == rules.STARTING_FEN


def test_validate_is_a_dry_run() -> None:
    board = rules.new_board()

    assert rules.validate(board, "e4").valid
    invalid = rules.validate(board, "e5")
    assert not invalid.valid
    assert invalid.reason is not None and "not legal" in invalid.reason
    assert board.fen() == rules.STARTING_FEN


def test_replay_rebuilds_position() -> None:
    board = rules.replay(["e4", "e5", "Nf3"])
    assert board.fen() == "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"


def test_replay_of_broken_history() -> None:
    with pytest.raises(CorruptStateError, match="Move 2"):
        rules.replay(["e4", "e4"])


# --- LEGAL MOVES ----
def test_legal_moves_at_start() -> None:
    assert len(rules.legal_moves(rules.new_board())) == 20


def test_legal_moves_from_square() -> None:
    board = rules.new_board()
    assert sorted(rules.legal_moves(board, "g1")) == ["Nf3", "Nh3"]
    assert sorted(rules.legal_moves(board, "E2")) == ["e3", "e4"]
    assert rules.legal_moves(board, "e4") == []


def test_legal_moves_from_unknown_square() -> None:
    assert rules.legal_moves(rules.new_board(), "z9") == []


def test_no_suggestion_without_legal_moves() -> None:
    assert rules.suggest(rules.Board(STALEMATE_FEN)) == "No legal moves available"


# --- END OF GAME ----
def test_game_goes_on() -> None:
    assert rules.game_end(rules.new_board()) is None


def test_checkmate() -> None:
    board = rules.replay(["f3", "e5", "g4", "Qh4#"])
    end = rules.game_end(board)

    assert end is not None
    assert end.result == GameResult.BLACK_WINS
    assert end.reason == GameEndReason.CHECKMATE
    assert end.draw_type is None


def test_stalemate() -> None:
    end = rules.game_end(rules.Board(STALEMATE_FEN))

    assert end is not None
    assert end.result == GameResult.DRAW
    assert end.reason == GameEndReason.STALEMATE
    assert end.draw_type == DrawType.STALEMATE


def test_insufficient_material() -> None:
    end = rules.game_end(rules.Board(BARE_KINGS_FEN))

    assert end is not None
    assert end.result == GameResult.DRAW
    assert end.draw_type == DrawType.INSUFFICIENT_MATERIAL


def test_fifty_move_rule_ends_the_game() -> None:
    end = rules.game_end(rules.Board(FIFTY_MOVES_FEN))

    assert end is not None
    assert end.result == GameResult.DRAW
    assert end.reason == GameEndReason.FIFTY_MOVE_RULE
    assert end.draw_type == DrawType.FIFTY_MOVE


def test_threefold_repetition_does_not_end_the_game() -> None:
    board = rules.replay(["Nf3", "Nf6", "Ng1", "Ng8"] * 2)
    assert board.is_repetition(3)
    assert rules.game_end(board) is None


def test_draw_types_are_only_those_that_end_a_game() -> None:
    """Claimable draws (threefold) have no DrawType: nothing would ever record one."""
    assert {draw.value for draw in DrawType} == {
        "stalemate",
        "insufficient_material",
        "fifty_move",
        "seventy_five_move",
        "fivefold_repetition",
        "agreement",
    }


# --- FEN HELPERS ----
def test_turn_from_fen() -> None:
    assert rules.turn(rules.STARTING_FEN) == Color.WHITE
    assert rules.turn(STALEMATE_FEN) == Color.BLACK


def test_position_key_ignores_move_counters() -> None:
    key = rules.position_key(FIFTY_MOVES_FEN)
    assert key == "k7/8/8/8/8/8/8/K6R w - -"
    assert rules.position_key("k7/8/8/8/8/8/8/K6R w - - 0 1") == key


def test_halfmove_clock() -> None:
    assert rules.halfmove_clock(FIFTY_MOVES_FEN) == 100
    assert rules.halfmove_clock("k7/8/8/8/8/8/8/K6R w - -") == 0


def test_to_uci() -> None:
    assert rules.to_uci(["e4", "e5", "Nf3"]) == ["e2e4", "e7e5", "g1f3"]


# --- PGN ----
def test_to_pgn() -> None:
    pgn = rules.to_pgn(["e4", "e5"], {"White": "alice", "Black": "bob", "Result": "*"})

    assert '[White "alice"]' in pgn
    assert '[Black "bob"]' in pgn
    assert "1. e4 e5 *" in pgn


def test_read_pgn() -> None:
    pgn = '[White "alice"]\n[Black "bob"]\n[Result "1-0"]\n\n1. e4 e5 2. Nf3 1-0\n'
    parsed = rules.read_pgn(pgn)

    assert parsed.moves == ["e4", "e5", "Nf3"]
    assert parsed.headers["White"] == "alice"
    assert parsed.headers["Result"] == "1-0"


def test_read_pgn_round_trip() -> None:
    moves = ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6"]
    pgn = rules.to_pgn(moves, {"Result": "*"})
    assert rules.read_pgn(pgn).moves == moves


def test_read_empty_pgn() -> None:
    with pytest.raises(InvalidRequestError, match="Invalid PGN format"):
        rules.read_pgn("")


def test_read_pgn_with_illegal_move() -> None:
    with pytest.raises(InvalidMoveError, match="Invalid move in PGN"):
        rules.read_pgn("1. e4 e5 2. Ke3 *\n")


def test_read_pgn_from_custom_position() -> None:
    pgn = f'[SetUp "1"]\n[FEN "{BARE_KINGS_FEN}"]\n\n*\n'
    with pytest.raises(InvalidRequestError, match="custom position"):
        rules.read_pgn(pgn)
