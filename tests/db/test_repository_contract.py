"""Tests shared by every implementation of chess_sessions/db/repository.py (in-memory and SQL)."""

from dataclasses import replace

import pytest

from chess_sessions.chess.game import Game
from chess_sessions.core.models import GameModel, TimeControl
from chess_sessions.core.shared_types import Status, TimeControlType
from chess_sessions.db.repository import GameRepository


def make_model(white: str = "alice", black: str = "bob", moves: tuple[str, ...] = ()) -> GameModel:
    game = Game.new_game(white, black, TimeControl(TimeControlType.FISCHER, 300, 2))
    for move in moves:
        game.apply_move(move)
    return game.to_model()


def test_save_then_load(any_repository: GameRepository) -> None:
    """The stored record comes back field by field."""
    model = make_model(moves=("e4", "e5"))
    any_repository.save_game(model)

    loaded = any_repository.load_game(model.id)
    assert loaded == model


def test_loaded_record_restores_a_game(any_repository: GameRepository) -> None:
    model = make_model(moves=("d4", "d5", "c4"))
    any_repository.save_game(model)

    loaded = any_repository.load_game(model.id)
    assert loaded is not None
    assert Game.from_model(loaded).to_model() == model


def test_load_unknown_game(any_repository: GameRepository) -> None:
    assert any_repository.load_game("does-not-exist") is None


def test_save_overwrites(any_repository: GameRepository) -> None:
    model = make_model()
    any_repository.save_game(model)

    game = Game.from_model(model)
    game.apply_move("e4")
    game.offer_draw("bob")
    any_repository.save_game(game.to_model())

    loaded = any_repository.load_game(model.id)
    assert loaded is not None
    assert loaded.move_history == ["e4"]
    assert loaded.draw_offer_from == "bob"
    assert len(any_repository.load_all_games()) == 1


def test_delete(any_repository: GameRepository) -> None:
    model = make_model()
    any_repository.save_game(model)

    assert any_repository.game_exists(model.id)
    assert any_repository.delete_game(model.id) is True
    assert not any_repository.game_exists(model.id)
    assert any_repository.load_game(model.id) is None
    assert any_repository.delete_game(model.id) is False


def test_load_by_status(any_repository: GameRepository) -> None:
    active = make_model()
    paused = replace(make_model(), status=Status.PAUSED.value, pause_requested_by="alice")
    for model in (active, paused):
        any_repository.save_game(model)

    assert [game.id for game in any_repository.load_games_by_status(Status.ACTIVE)] == [active.id]
    assert [game.id for game in any_repository.load_games_by_status(Status.PAUSED)] == [paused.id]
    assert any_repository.load_games_by_status(Status.COMPLETED) == []


def test_load_by_player(any_repository: GameRepository) -> None:
    first = make_model("alice", "bob")
    second = make_model("carol", "alice")
    third = make_model("carol", "dave")
    for model in (first, second, third):
        any_repository.save_game(model)

    alice_games = {game.id for game in any_repository.load_games_by_player("alice")}
    assert alice_games == {first.id, second.id}
    assert any_repository.load_games_by_player("erin") == []


def test_count_active_games(any_repository: GameRepository) -> None:
    assert any_repository.count_active_games() == 0

    for _ in range(3):
        any_repository.save_game(make_model())
    completed = make_model()
    game = Game.from_model(completed)
    game.resign("alice")
    any_repository.save_game(game.to_model())

    assert any_repository.count_active_games() == 3
    assert len(any_repository.load_all_games()) == 4


def test_is_healthy(any_repository: GameRepository) -> None:
    assert any_repository.is_healthy()


@pytest.mark.parametrize("player", ["alice", "bob"])
def test_completed_record_round_trip(any_repository: GameRepository, player: str) -> None:
    game = Game.new_game("alice", "bob")
    game.offer_draw(player)
    game.accept_draw("bob" if player == "alice" else "alice")
    any_repository.save_game(game.to_model())

    loaded = any_repository.load_game(game.id)
    assert loaded is not None
    assert loaded.result == "1/2-1/2"
    assert loaded.draw_details == {"type": "agreement", "description": "Draw by mutual agreement"}
    assert loaded.termination == "draw_agreement"
