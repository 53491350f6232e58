"""
The Game class is the entrypoint into the domain layer for the service layer.
It owns the state machine of a single game (active / paused / completed), the move list and the draw bookkeeping.
Whether a move is legal, and whether the board position ends the game, is decided by the rules engine (rules.py).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Self
from uuid import uuid4

from chess_sessions.chess import rules
from chess_sessions.chess.move_history import MoveHistory, build_move_history
from chess_sessions.chess.repetition import PositionHistory
from chess_sessions.core.exceptions import (
    CorruptStateError,
    IllegalStateError,
    InvalidRequestError,
    NotYourTurnError,
    UnknownParticipantError,
)
from chess_sessions.core.models import (
    BoardState,
    DrawDetails,
    DrawStatus,
    GameExport,
    GameModel,
    MoveValidation,
    TimeControl,
)
from chess_sessions.core.shared_types import (
    BoardFormat,
    Color,
    DrawType,
    ExportFormat,
    GameEndReason,
    GameResult,
    MoveHistoryFormat,
    Status,
    utc_now,
)

logger = logging.getLogger(__name__)

FIFTY_MOVE_LIMIT = 50
APPROACHING_FIFTY_MOVE_HALFMOVES = 80
APPROACHING_REPETITION_COUNT = 2

PGN_EVENT = "Chess Sessions Game"
PGN_SITE = "chess-sessions"


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    id: str
    white_player_id: str
    black_player_id: str
    status: Status
    created_at: datetime
    updated_at: datetime
    board: rules.Board = field(repr=False, compare=False)
    moves: list[str] = field(default_factory=list)
    position_history: PositionHistory = field(default_factory=PositionHistory)
    result: Optional[GameResult] = None
    termination: Optional[GameEndReason] = None
    draw_details: Optional[DrawDetails] = None
    time_control: Optional[TimeControl] = None
    last_move_at: Optional[datetime] = None
    white_time_remaining: Optional[int] = None
    black_time_remaining: Optional[int] = None
    draw_offer_from: Optional[str] = None
    pause_requested_by: Optional[str] = None

    @classmethod
    def new_game(
        cls,
        white_player_id: str,
        black_player_id: str,
        time_control: Optional[TimeControl] = None,
    ) -> Self:
        """Start a game from the standard opening position. White moves first."""
        now = utc_now()
        board = rules.new_board()

        # remaining time only exists when the time control specifies a starting budget
        initial_time = time_control.initial_time if time_control else None

        return cls(
            id=str(uuid4()),
            white_player_id=white_player_id,
            black_player_id=black_player_id,
            status=Status.ACTIVE,
            created_at=now,
            updated_at=now,
            board=board,
            moves=[],
            position_history=PositionHistory.starting_from(board.fen()),
            time_control=time_control,
            white_time_remaining=initial_time,
            black_time_remaining=initial_time,
        )

    @classmethod
    def from_model(cls, model: GameModel) -> Self:
        """
        Restore a Game from the information the Service layer actually has.
        ----

        The engine state is rebuilt by replaying the moves from the opening position. The turn is derived from the
        restored position, never from a separately stored value.
        Raises CorruptStateError if the record cannot be trusted.
        """

        # Validation
        try:
            status = Status(model.status)
            result = GameResult(model.result) if model.result else None
            termination = GameEndReason(model.termination) if model.termination else None
            draw_details = DrawDetails.from_dict(model.draw_details) if model.draw_details else None
            time_control = TimeControl.from_dict(model.time_control) if model.time_control else None
        except (ValueError, KeyError) as error:
            raise CorruptStateError(f"Game {model.id} has an invalid field: {error}") from error

        if status == Status.COMPLETED and result is None:
            raise CorruptStateError(f"Game {model.id} is completed but has no result.")

        # recreate the engine state
        board = rules.replay(model.move_history)
        if board.fen() != model.fen:
            raise CorruptStateError(
                f"Game {model.id}: replayed position {board.fen()!r} does not match stored position {model.fen!r}."
            )

        position_history = (
            PositionHistory(model.position_history)
            if model.position_history
            else cls._rebuild_position_history(model.move_history)
        )

        return cls(
            id=model.id,
            white_player_id=model.white_player_id,
            black_player_id=model.black_player_id,
            status=status,
            created_at=model.created_at,
            updated_at=model.updated_at,
            board=board,
            moves=list(model.move_history),
            position_history=position_history,
            result=result,
            termination=termination,
            draw_details=draw_details,
            time_control=time_control,
            last_move_at=model.last_move_at,
            white_time_remaining=model.white_time_remaining,
            black_time_remaining=model.black_time_remaining,
            draw_offer_from=model.draw_offer_from,
            pause_requested_by=model.pause_requested_by,
        )

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""

        return GameModel(
            id=self.id,
            white_player_id=self.white_player_id,
            black_player_id=self.black_player_id,
            fen=self.fen,
            pgn=self.pgn,
            status=self.status.value,
            created_at=self.created_at,
            updated_at=self.updated_at,
            move_history=list(self.moves),
            position_history=self.position_history.to_dict(),
            result=self.result.value if self.result else None,
            draw_details=self.draw_details.to_dict() if self.draw_details else None,
            termination=self.termination.value if self.termination else None,
            time_control=self.time_control.to_dict() if self.time_control else None,
            last_move_at=self.last_move_at,
            white_time_remaining=self.white_time_remaining,
            black_time_remaining=self.black_time_remaining,
            draw_offer_from=self.draw_offer_from,
            pause_requested_by=self.pause_requested_by,
        )

    @classmethod
    def from_pgn(
        cls,
        pgn: str,
        white_player_id: Optional[str] = None,
        black_player_id: Optional[str] = None,
    ) -> Self:
        """
        Build a game out of a PGN transcript. Player IDs default to the White/Black headers.
        A decisive Result header completes the game, unless the moves themselves already ended it.
        """
        parsed = rules.read_pgn(pgn)
        # python-chess fills missing roster tags with "?"
        white_header = parsed.headers.get("White", "?")
        black_header = parsed.headers.get("Black", "?")
        game = cls.new_game(
            white_player_id or (white_header if white_header != "?" else "Unknown"),
            black_player_id or (black_header if black_header != "?" else "Unknown"),
        )
        for move in parsed.moves:
            game.apply_move(move)

        result = parsed.headers.get("Result", "*")
        if result != "*" and game.status != Status.COMPLETED:
            try:
                game_result = GameResult(result)
            except ValueError as error:
                raise InvalidRequestError(f"Unknown PGN result: {result!r}") from error
            game.complete_game(game_result)
        return game

    # --- READ-ONLY VIEWS ---
    @property
    def fen(self) -> str:
        return self.board.fen()

    @property
    def turn(self) -> Color:
        return rules.turn(self.fen)

    @property
    def current_turn_player(self) -> str:
        return self.white_player_id if self.turn == Color.WHITE else self.black_player_id

    @property
    def is_check(self) -> bool:
        return self.board.is_check()

    @property
    def pgn(self) -> str:
        """Regenerated from the move list on every call, so it can never drift from it."""
        return rules.to_pgn(self.moves, self._pgn_headers())

    def ascii_board(self) -> str:
        return rules.ascii_board(self.board)

    def board_state(self, fmt: BoardFormat = BoardFormat.VISUAL) -> BoardState:
        renderers = {
            BoardFormat.VISUAL: self.ascii_board,
            BoardFormat.FEN: lambda: self.fen,
            BoardFormat.PGN: lambda: self.pgn,
        }
        fmt = BoardFormat(fmt)
        return BoardState(
            game_id=self.id,
            format=fmt.value,
            board=renderers[fmt](),
            current_turn=self.turn.value,
            is_check=self.is_check,
            status=self.status.value,
        )

    def legal_moves(self, square: Optional[str] = None) -> list[str]:
        return rules.legal_moves(self.board, square)

    def move_history(self, fmt: MoveHistoryFormat = MoveHistoryFormat.ALGEBRAIC) -> MoveHistory:
        return build_move_history(self.moves, fmt, self.last_move_at)

    def repetition_count(self) -> int:
        return self.position_history.count(self.fen)

    def get_draw_status(self) -> Optional[DrawStatus]:
        """
        Advisory draw information (only for active games).
        ----

        The thresholds are signals for the players. Ending the game is up to the rules engine (or the players).
        """
        if self.status != Status.ACTIVE:
            return None

        halfmove_clock = rules.halfmove_clock(self.fen)
        repetition_count = self.repetition_count()
        return DrawStatus(
            halfmove_clock=halfmove_clock,
            moves_until_fifty_move=FIFTY_MOVE_LIMIT - halfmove_clock // 2,
            repetition_count=repetition_count,
            is_approaching_fifty_move=halfmove_clock >= APPROACHING_FIFTY_MOVE_HALFMOVES,
            is_approaching_repetition=repetition_count >= APPROACHING_REPETITION_COUNT,
        )

    def validate_move(self, move: str) -> MoveValidation:
        """Check a move without playing it."""
        if self.status == Status.PAUSED:
            return MoveValidation(
                valid=False,
                reason="Game is paused",
                suggestion="Resume the game to make moves",
            )
        if self.status != Status.ACTIVE:
            return MoveValidation(
                valid=False,
                reason="Cannot validate moves in inactive games",
                suggestion="Game must be active to validate moves",
            )
        return rules.validate(self.board, move)

    def export(self, fmt: ExportFormat = ExportFormat.PGN) -> GameExport:
        content = self.pgn if ExportFormat(fmt) == ExportFormat.PGN else self.fen
        return GameExport(
            game_id=self.id,
            format=ExportFormat(fmt).value,
            content=content,
            metadata={
                "white_player": self.white_player_id,
                "black_player": self.black_player_id,
                "result": self.result.value if self.result else "*",
                "game_status": self.status.value,
                "date": self.created_at.date().isoformat(),
            },
        )

    # --- STATE TRANSITIONS ---
    def apply_move(self, move: str, player_id: Optional[str] = None) -> str:
        """
        Attempt to make a move and return it in SAN.
        -----

        1. make sure the game accepts moves (and, if a player is given, that it is their turn)
        2. let the rules engine apply the move (InvalidMoveError leaves the game untouched)
        3. update the move list, timestamps and position history
        4. complete the game if the engine says it is over
        """
        self._assert_can_move()
        if player_id is not None:
            self._assert_your_turn(player_id)

        san = rules.apply(self.board, move)

        now = utc_now()
        self.moves.append(san)
        self.last_move_at = now
        self.updated_at = now
        self.position_history.record(self.fen)

        game_end = rules.game_end(self.board)
        if game_end is not None:
            draw_details = (
                DrawDetails(type=game_end.draw_type, description=game_end.description)
                if game_end.draw_type
                else None
            )
            self.complete_game(game_end.result, termination=game_end.reason, draw_details=draw_details)
        return san

    def complete_game(
        self,
        result: GameResult,
        termination: Optional[GameEndReason] = None,
        draw_details: Optional[DrawDetails] = None,
    ) -> None:
        """End the game. Not idempotent: completing a completed game fails."""
        if self.status == Status.COMPLETED:
            raise IllegalStateError("Game is already completed")
        if self.status == Status.PAUSED:
            raise IllegalStateError("Cannot complete a paused game. Resume it first")

        self.status = Status.COMPLETED
        self.result = GameResult(result)
        self.termination = termination
        self.draw_details = draw_details
        self.draw_offer_from = None
        self.updated_at = utc_now()
        logger.info("Game %s completed: %s (%s)", self.id, self.result, termination or "no reason given")

    def resign(self, player_id: str) -> None:
        """The opponent of the resigning player wins."""
        if self.status != Status.ACTIVE:
            raise IllegalStateError("Can only resign active games")
        color = self._get_player_color(player_id)
        result = GameResult.BLACK_WINS if color == Color.WHITE else GameResult.WHITE_WINS
        self.complete_game(result, termination=GameEndReason.RESIGNATION)

    def offer_draw(self, player_id: str) -> None:
        if self.status != Status.ACTIVE:
            raise IllegalStateError("Can only offer draw in active games")
        self._assert_participant(player_id)

        self.draw_offer_from = player_id
        self.updated_at = utc_now()

    def accept_draw(self, player_id: str) -> None:
        if self.status != Status.ACTIVE:
            raise IllegalStateError("Can only accept draw in active games")
        if self.draw_offer_from is None:
            raise IllegalStateError("No draw offer to accept")
        self._assert_participant(player_id)
        if player_id == self.draw_offer_from:
            raise IllegalStateError("Cannot accept own draw offer")

        self.complete_game(
            GameResult.DRAW,
            termination=GameEndReason.DRAW_AGREEMENT,
            draw_details=DrawDetails(type=DrawType.AGREEMENT, description="Draw by mutual agreement"),
        )

    def decline_draw(self, player_id: Optional[str] = None) -> None:
        if player_id is not None:
            self._assert_participant(player_id)
        if self.draw_offer_from is None:
            raise IllegalStateError("No draw offer to decline")

        self.draw_offer_from = None
        self.updated_at = utc_now()

    def pause(self, player_id: str) -> None:
        if self.status == Status.COMPLETED:
            raise IllegalStateError("Cannot pause completed game")
        if self.status == Status.PAUSED:
            raise IllegalStateError("Game is already paused")
        self._assert_participant(player_id)

        self._change_status(Status.PAUSED)
        self.pause_requested_by = player_id
        # an outstanding draw offer does not survive the pause
        self.draw_offer_from = None

    def resume(self) -> None:
        if self.status == Status.COMPLETED:
            raise IllegalStateError("Cannot resume completed game")
        if self.status != Status.PAUSED:
            raise IllegalStateError("Game is not paused")

        self._change_status(Status.ACTIVE)
        self.pause_requested_by = None

    # -- PRIVATE HELPERS ---
    def _change_status(self, new_status: Status) -> None:
        self.status = new_status
        self.updated_at = utc_now()

    def _assert_can_move(self) -> None:
        if self.status == Status.PAUSED:
            raise IllegalStateError("Game is paused")
        if self.status != Status.ACTIVE:
            raise IllegalStateError("Cannot make moves in inactive games")

    def _assert_participant(self, player_id: str) -> None:
        if player_id not in (self.white_player_id, self.black_player_id):
            raise UnknownParticipantError(f"Player {player_id!r} is not a player in this game")

    def _assert_your_turn(self, player_id: str) -> None:
        """You must wait for your turn before making a move."""
        self._assert_participant(player_id)
        if player_id != self.current_turn_player:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {self.current_turn_player} to make a move first."
            )

    def _get_player_color(self, player_id: str) -> Color:
        self._assert_participant(player_id)
        return Color.WHITE if player_id == self.white_player_id else Color.BLACK

    def _pgn_headers(self) -> dict[str, str]:
        return {
            "Event": PGN_EVENT,
            "Site": PGN_SITE,
            "Date": self.created_at.strftime("%Y.%m.%d"),
            "Round": "1",
            "White": self.white_player_id,
            "Black": self.black_player_id,
            "Result": self.result.value if self.result else "*",
        }

    @staticmethod
    def _rebuild_position_history(moves: list[str]) -> PositionHistory:
        """Older records may lack the counts; replaying the moves gives them back."""
        board = rules.new_board()
        history = PositionHistory.starting_from(board.fen())
        for move in moves:
            rules.apply(board, move)
            history.record(board.fen())
        return history
