"""
Tool front end: one named tool per GameManager operation.

A tool call is validated against the tool's request model before it is dispatched. Every outcome, including errors
raised anywhere below, comes back as a ToolResult: `{success: true, data}` or `{success: false, error}`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python

from chess_sessions.api.models import (
    BoardStateRequest,
    CreateGameRequest,
    ExportGameRequest,
    GameIdRequest,
    GameSummary,
    ImportGameRequest,
    LegalMovesRequest,
    ListGamesRequest,
    MakeMoveRequest,
    MoveHistoryRequest,
    PlayerActionRequest,
    ToolModel,
    ToolResult,
    ValidateMoveRequest,
)
from chess_sessions.chess.game import Game
from chess_sessions.core.exceptions import (
    GameError,
    InvalidMoveError,
    NotFoundError,
)
from chess_sessions.services.game_manager import GameManager

logger = logging.getLogger(__name__)

SERVER_NAME = "chess-sessions"
SERVER_VERSION = "0.1.0"


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    request_model: type[ToolModel]
    handler: Callable[[Any], Any]

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.request_model.model_json_schema(by_alias=True),
        }


def camelize(value: Any) -> Any:
    """JSON-safe copy of a dataclass / dict / list with camelCase keys."""
    value = to_jsonable_python(value)
    if isinstance(value, dict):
        return {to_camel(key): camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [camelize(item) for item in value]
    return value


class ChessToolServer:
    """Registry of tools and their dispatch onto a GameManager."""

    def __init__(self, manager: GameManager) -> None:
        self.manager = manager
        self._tools: dict[str, Tool] = {tool.name: tool for tool in self._build_tools()}

    def server_info(self) -> dict[str, str]:
        return {
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "description": "Tool server for chess game management and interaction",
        }

    def list_tools(self) -> list[dict[str, Any]]:
        return [tool.describe() for tool in self._tools.values()]

    def execute_tool(self, name: str, parameters: dict[str, Any]) -> ToolResult:
        tool = self._tools.get(name)
        if tool is None:
            return ToolResult.failure(f"Unknown tool: {name}")

        try:
            request = tool.request_model.model_validate(parameters)
        except ValidationError as error:
            return ToolResult.failure(_describe_validation_error(error))
        except GameError as error:
            # raised from field validators
            return ToolResult.failure(str(error))

        try:
            return ToolResult.ok(tool.handler(request))
        except InvalidMoveError as error:
            logger.info("Tool %s rejected move: %s", name, error)
            return ToolResult.failure(
                str(error),
                data={
                    "suggestion": error.suggestion,
                    "move": getattr(request, "move", None),
                    "gameId": getattr(request, "game_id", None),
                },
            )
        except GameError as error:
            logger.info("Tool %s failed: %s", name, error)
            return ToolResult.failure(str(error))

    # --- TOOL HANDLERS ---
    def _create_game(self, request: CreateGameRequest) -> dict[str, Any]:
        time_control = request.time_control.to_time_control() if request.time_control else None
        game = self.manager.create_game(
            request.white_player_id, request.black_player_id, time_control
        )
        return GameSummary.from_game(game).to_data()

    def _get_game_status(self, request: GameIdRequest) -> dict[str, Any]:
        return GameSummary.from_game(self._get(request.game_id)).to_data()

    def _make_move(self, request: MakeMoveRequest) -> dict[str, Any]:
        game = self.manager.make_move(request.game_id, request.move, request.player_id)
        return {
            "gameId": game.id,
            "move": game.moves[-1],
            "currentTurn": game.turn.value,
            "status": game.status.value,
            "result": game.result.value if game.result else None,
            "moveHistory": list(game.moves),
        }

    def _list_games(self, request: ListGamesRequest) -> dict[str, Any]:
        if request.player_id is not None:
            games = self.manager.list_player_games(request.player_id)
            if request.status is not None:
                games = [game for game in games if game.status == request.status]
        elif request.status is not None:
            games = self.manager.list_games_by_status(request.status)
        else:
            games = self.manager.list_all_games()
        return {"games": [GameSummary.from_game(game).to_data() for game in games]}

    def _resign_game(self, request: PlayerActionRequest) -> dict[str, Any]:
        game = self.manager.resign(request.game_id, request.player_id)
        return {
            "gameId": game.id,
            "status": game.status.value,
            "result": game.result.value if game.result else None,
            "resignedBy": request.player_id,
        }

    def _offer_draw(self, request: PlayerActionRequest) -> dict[str, Any]:
        game = self.manager.offer_draw(request.game_id, request.player_id)
        return {
            "gameId": game.id,
            "status": game.status.value,
            "drawOfferFrom": game.draw_offer_from,
        }

    def _accept_draw(self, request: PlayerActionRequest) -> dict[str, Any]:
        game = self.manager.accept_draw(request.game_id, request.player_id)
        return {
            "gameId": game.id,
            "status": game.status.value,
            "result": game.result.value if game.result else None,
            "drawDetails": camelize(game.draw_details),
        }

    def _decline_draw(self, request: PlayerActionRequest) -> dict[str, Any]:
        game = self.manager.decline_draw(request.game_id, request.player_id)
        return {
            "gameId": game.id,
            "status": game.status.value,
            "declinedBy": request.player_id,
        }

    def _get_legal_moves(self, request: LegalMovesRequest) -> dict[str, Any]:
        moves = self.manager.legal_moves(request.game_id, request.square)
        return {
            "gameId": request.game_id,
            "square": request.square,
            "legalMoves": moves,
            "count": len(moves),
        }

    def _get_board_state(self, request: BoardStateRequest) -> dict[str, Any]:
        return camelize(self.manager.board_state(request.game_id, request.format))

    def _validate_move(self, request: ValidateMoveRequest) -> dict[str, Any]:
        return camelize(self.manager.validate_move(request.game_id, request.move))

    def _get_move_history(self, request: MoveHistoryRequest) -> dict[str, Any]:
        history = self.manager.move_history(request.game_id, request.format)
        return {"gameId": request.game_id, "format": history.format.value, **camelize(history)}

    def _get_draw_status(self, request: GameIdRequest) -> dict[str, Any]:
        return {
            "gameId": request.game_id,
            "drawStatus": camelize(self.manager.draw_status(request.game_id)),
        }

    def _export_game(self, request: ExportGameRequest) -> dict[str, Any]:
        return camelize(self.manager.export_game(request.game_id, request.format))

    def _import_game(self, request: ImportGameRequest) -> dict[str, Any]:
        metadata = request.metadata
        imported = self.manager.import_game(
            request.pgn,
            white_player_id=metadata.white_player_id if metadata else None,
            black_player_id=metadata.black_player_id if metadata else None,
        )
        return camelize(imported)

    def _pause_game(self, request: PlayerActionRequest) -> dict[str, Any]:
        game = self.manager.pause(request.game_id, request.player_id)
        return {
            "gameId": game.id,
            "status": game.status.value,
            "pausedBy": game.pause_requested_by,
        }

    def _resume_game(self, request: GameIdRequest) -> dict[str, Any]:
        game = self.manager.resume(request.game_id)
        return {"gameId": game.id, "status": game.status.value}

    def _delete_game(self, request: GameIdRequest) -> dict[str, Any]:
        return {"gameId": request.game_id, "deleted": self.manager.delete_game(request.game_id)}

    # -- Internal helpers --
    def _get(self, game_id: str) -> Game:
        game = self.manager.get_game(game_id)
        if game is None:
            raise NotFoundError(f"Game not found: {game_id}")
        return game

    def _build_tools(self) -> list[Tool]:
        return [
            Tool("create_game", "Create a new chess game between two players", CreateGameRequest, self._create_game),
            Tool("get_game_status", "Get the current status of a chess game", GameIdRequest, self._get_game_status),
            Tool("make_move", "Make a move in a chess game", MakeMoveRequest, self._make_move),
            Tool("list_games", "List games with optional filtering", ListGamesRequest, self._list_games),
            Tool("resign_game", "Resign from a chess game", PlayerActionRequest, self._resign_game),
            Tool("offer_draw", "Offer a draw in a chess game", PlayerActionRequest, self._offer_draw),
            Tool("accept_draw", "Accept a draw offer in a chess game", PlayerActionRequest, self._accept_draw),
            Tool("decline_draw", "Decline a draw offer in a chess game", PlayerActionRequest, self._decline_draw),
            Tool(
                "get_legal_moves",
                "Get legal moves for the current position in a chess game",
                LegalMovesRequest,
                self._get_legal_moves,
            ),
            Tool(
                "get_board_state",
                "Get the current board state in various formats",
                BoardStateRequest,
                self._get_board_state,
            ),
            Tool("validate_move", "Validate a chess move without executing it", ValidateMoveRequest, self._validate_move),
            Tool("get_move_history", "Get the move history of a chess game", MoveHistoryRequest, self._get_move_history),
            Tool(
                "get_draw_status",
                "Get fifty-move and repetition information of an active game",
                GameIdRequest,
                self._get_draw_status,
            ),
            Tool("export_game", "Export a chess game in PGN or FEN format", ExportGameRequest, self._export_game),
            Tool("import_game", "Import a chess game from PGN format", ImportGameRequest, self._import_game),
            Tool("pause_game", "Pause an active chess game", PlayerActionRequest, self._pause_game),
            Tool("resume_game", "Resume a paused chess game", GameIdRequest, self._resume_game),
            Tool("delete_game", "Delete a chess game", GameIdRequest, self._delete_game),
        ]


def _describe_validation_error(error: ValidationError) -> str:
    """First problem found, phrased for the caller."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    if first["type"] == "missing":
        return f"Missing required parameter: {location}"
    if first["type"] == "string_type":
        return f"Invalid parameter type for {location}: expected string"
    return f"Invalid parameter {location}: {first['msg']}"
