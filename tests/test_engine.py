# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Unit tests for the game engine turn state machine.
"""

import random
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from game.board import Board, CellState, ShotResult
from game.context import SessionContext
from game.engine import GameEngine, GameState
from game.errors import GameLogicError
from game.store import MemoryStore


def make_engine(is_player1: bool = True, seed: int = 0) -> GameEngine:
    """Engine with a patrol at (0,0) and a carrier at (0,5) on both boards."""
    store = MemoryStore()
    context = SessionContext(
        game_id="game",
        player_id="me",
        ref=store.ref("game"),
        is_player1=is_player1,
        opponent_id="them",
    )
    engine = GameEngine(context, rng=random.Random(seed))
    engine.create_boards()
    for board in (engine.my_board, engine.opponent_board):
        board.place_ship("patrol", 0, 0)
        board.place_ship("carrier", 0, 5)
    return engine


def stored(engine: GameEngine):
    return engine.context.ref.get_once() or {}


class TestObservers:
    """Tests for state and shot notifications."""

    def test_initial_state(self):
        engine = make_engine()
        assert engine.state == GameState.INIT
        assert engine.state == "init"

    def test_state_listener_replaced(self):
        """Only the most recently registered listener is called."""
        engine = make_engine()
        first, second = [], []
        engine.on_state_change(first.append)
        engine.on_state_change(second.append)

        engine.player1_turn()
        assert first == []
        assert second == [GameState.PLAYER1_TURN]

    def test_shot_listener(self):
        engine = make_engine()
        shots = []
        engine.on_shot_taken(lambda *args: shots.append(args))
        engine.player1_turn()

        engine.square_selected(False, 0, 0)
        local, x, y, result = shots[0]
        assert (local, x, y) == (True, 0, 0)
        assert isinstance(result, ShotResult)
        assert result.ship.name == "Defiant Boat"

    def test_turn_by_role(self):
        engine = make_engine(is_player1=True)
        engine.turn()
        assert engine.state == GameState.PLAYER1_TURN

        engine = make_engine(is_player1=False)
        engine.turn()
        assert engine.state == GameState.PLAYER2_TURN


class TestSquareSelected:
    """Tests for the player move entry point."""

    def test_select_ship_while_choosing(self):
        engine = make_engine()
        engine.choose_positions()

        assert engine.square_selected(True, 1, 0) is True
        assert engine.my_board.selected_ship() == "patrol"

    def test_move_selected_ship_while_choosing(self):
        engine = make_engine()
        engine.choose_positions()
        engine.square_selected(True, 0, 0)

        assert engine.square_selected(True, 4, 3) is True
        assert engine.my_board.ship_at_square(5, 3) == "patrol"
        assert engine.my_board.ship_at_square(0, 0) is None

    def test_empty_square_without_selection(self):
        engine = make_engine()
        engine.choose_positions()
        assert engine.square_selected(True, 4, 3) is False

    def test_illegal_move_ignored(self):
        engine = make_engine()
        engine.choose_positions()
        engine.square_selected(True, 0, 0)

        assert engine.square_selected(True, 9, 0) is False
        assert engine.my_board.ship_at_square(0, 0) == "patrol"

    def test_rotate_and_random_delegate_to_my_board(self):
        engine = make_engine()
        engine.choose_positions()
        engine.square_selected(True, 0, 5)
        engine.rotate_selected_ship()
        assert engine.my_board.ships["carrier"].vertical

        engine.choose_random_ship_locations()
        assert len(engine.my_board.ships) == 5
        assert len(engine.opponent_board.ships) == 2

    def test_placement_before_boards_is_ignored(self):
        store = MemoryStore()
        context = SessionContext(game_id="g", player_id="me", ref=store.ref("g"))
        engine = GameEngine(context, rng=random.Random(0))

        engine.choose_random_ship_locations()
        engine.rotate_selected_ship()
        assert engine.move_selected_ship(3, 3) is False
        assert engine.my_board is None

    def test_cannot_fire_out_of_turn(self):
        engine = make_engine()
        engine.player2_turn()

        assert engine.square_selected(False, 0, 0) is False
        assert engine.opponent_board.shots_taken == []

    def test_cannot_fire_at_own_board(self):
        engine = make_engine()
        engine.player1_turn()

        assert engine.square_selected(True, 0, 0) is False
        assert engine.my_board.shots_taken == []

    def test_cannot_place_during_battle(self):
        engine = make_engine()
        engine.player1_turn()
        assert engine.square_selected(True, 0, 0) is False
        assert engine.my_board.selected_ship() is None

    def test_cannot_fire_while_choosing(self):
        engine = make_engine()
        engine.choose_positions()
        assert engine.square_selected(False, 5, 5) is False

    def test_repeat_shot_ignored(self):
        engine = make_engine()
        engine.player1_turn()

        assert engine.square_selected(False, 0, 0) is True
        assert engine.square_selected(False, 0, 0) is False
        assert engine.opponent_board.shots_taken == [(0, 0)]
        assert engine.opponent_board.ships["patrol"].hits == 1

    def test_off_board_ignored(self):
        engine = make_engine()
        engine.player1_turn()
        assert engine.square_selected(False, 10, 3) is False


class TestTurnHandOff:
    """Hit keeps the turn, miss passes it, for both shooters."""

    def test_local_hit_keeps_turn(self):
        engine = make_engine()
        engine.player1_turn()
        states = []
        engine.on_state_change(states.append)

        engine.square_selected(False, 0, 0)

        assert engine.state == GameState.PLAYER1_TURN
        assert states == []
        assert "turn" not in stored(engine)

    def test_local_miss_passes_turn(self):
        engine = make_engine()
        engine.player1_turn()

        engine.square_selected(False, 5, 0)

        assert engine.state == GameState.PLAYER2_TURN
        assert stored(engine)["turn"] == "them"

    def test_remote_hit_keeps_turn(self):
        engine = make_engine()
        engine.player2_turn()
        engine._random_turns = [(0, 0)]
        states = []
        engine.on_state_change(states.append)

        assert engine.take_ai_turn() == (0, 0)

        assert engine.state == GameState.PLAYER2_TURN
        assert states == []
        assert engine.my_board.cell(0, 0) == CellState.HIT
        assert "turn" not in stored(engine)

    def test_remote_miss_passes_turn(self):
        engine = make_engine()
        engine.player2_turn()
        engine._random_turns = [(9, 9)]

        engine.take_ai_turn()

        assert engine.state == GameState.PLAYER1_TURN
        assert engine.my_board.cell(9, 9) == CellState.MISS
        assert stored(engine)["turn"] == "me"

    def test_shot_taken_result_directly(self):
        """The four cases resolved without firing."""
        hit = ShotResult(won_game=False, ship=None)

        engine = make_engine()
        engine.player1_turn()
        engine.shot_taken_result(True, hit)
        assert engine.state == GameState.PLAYER1_TURN
        engine.shot_taken_result(True, False)
        assert engine.state == GameState.PLAYER2_TURN
        engine.shot_taken_result(False, hit)
        assert engine.state == GameState.PLAYER2_TURN
        engine.shot_taken_result(False, False)
        assert engine.state == GameState.PLAYER1_TURN


class TestGameOver:
    """Tests for win and loss detection."""

    def test_local_player_wins(self):
        engine = make_engine()
        del engine.opponent_board.ships["carrier"]
        engine.player1_turn()

        engine.square_selected(False, 0, 0)
        assert engine.state == GameState.PLAYER1_TURN
        engine.square_selected(False, 1, 0)
        assert engine.state == GameState.PLAYER_WON
        assert engine.is_over

    def test_local_player_loses(self):
        engine = make_engine()
        del engine.my_board.ships["carrier"]
        engine.player2_turn()
        engine._random_turns = [(1, 0), (0, 0)]

        engine.take_ai_turn()
        engine.take_ai_turn()
        assert engine.state == GameState.PLAYER_LOST

    def test_no_moves_after_game_over(self):
        engine = make_engine()
        del engine.opponent_board.ships["carrier"]
        engine.player1_turn()
        engine.square_selected(False, 0, 0)
        engine.square_selected(False, 1, 0)

        assert engine.square_selected(False, 5, 5) is False
        engine.shot_taken_result(True, False)
        assert engine.state == GameState.PLAYER_WON

    def test_check_game_over(self):
        engine = make_engine()
        engine.player2_turn()
        for ship in engine.my_board.ships.values():
            ship.dead = True

        engine.check_game_over()
        assert engine.state == GameState.PLAYER_LOST

    def test_check_game_over_open_game(self):
        engine = make_engine()
        engine.player1_turn()
        engine.check_game_over()
        assert engine.state == GameState.PLAYER1_TURN


class TestComputerOpponent:
    """Tests for the shuffled computer shot order."""

    def test_never_repeats_and_underflow_is_fatal(self):
        engine = make_engine()
        engine.my_board.restore({})
        engine.player2_turn()

        fired = [engine.take_ai_turn() for _ in range(100)]
        assert len(set(fired)) == 100

        with pytest.raises(GameLogicError):
            engine.take_ai_turn()

    def test_shot_order_depends_on_seed(self):
        first = make_engine(seed=1)._random_turns
        again = make_engine(seed=1)._random_turns
        other = make_engine(seed=2)._random_turns
        assert first == again
        assert first != other


class TestStoreSync:
    """Tests for saving and restoring both boards."""

    def test_new_game_randomizes_both_fleets(self):
        engine = make_engine()
        engine.new_game()
        assert len(engine.my_board.ships) == 5
        assert len(engine.opponent_board.ships) == 5
        assert engine.player is engine.my_board

    def test_save_state_as_player1(self):
        engine = make_engine(is_player1=True)
        engine.my_board.take_shot(9, 9)
        engine.save_state()

        state = stored(engine)["state"]
        assert state["player1"] == engine.my_board.save()
        assert state["player2"] == engine.opponent_board.save()

    def test_save_state_as_player2(self):
        engine = make_engine(is_player1=False)
        engine.my_board.take_shot(9, 9)
        engine.save_state()

        state = stored(engine)["state"]
        assert state["player2"] == engine.my_board.save()
        assert state["player1"] == engine.opponent_board.save()

    def test_state_saved_after_every_shot(self):
        engine = make_engine()
        engine.player1_turn()
        engine.square_selected(False, 0, 0)

        state = stored(engine)["state"]
        assert state["player2"]["shotsTaken"] == [{"x": 0, "y": 0}]

    def test_restore_boards_swaps_slots(self):
        mine = Board()
        mine.place_ship("patrol", 3, 3)
        theirs = Board()
        theirs.place_ship("carrier", 0, 9)
        snapshot = {"player1": theirs.save(), "player2": mine.save()}

        engine = make_engine(is_player1=False)
        engine.restore_boards(snapshot)

        assert engine.my_board.save() == mine.save()
        assert engine.opponent_board.save() == theirs.save()

    def test_restore_boards_creates_boards(self):
        store = MemoryStore()
        context = SessionContext(game_id="g", player_id="me", ref=store.ref("g"))
        engine = GameEngine(context, rng=random.Random(0))
        engine.restore_boards(None)
        assert engine.my_board.ships == {}
        assert engine.opponent_board.ships == {}

    def test_save_before_boards_is_fatal(self):
        store = MemoryStore()
        context = SessionContext(game_id="g", player_id="me", ref=store.ref("g"))
        with pytest.raises(GameLogicError):
            GameEngine(context).save_state()

    def test_start_game_publishes_and_clears_selection(self):
        engine = make_engine()
        engine.my_board.select_ship("patrol")
        engine.start_game()

        assert engine.my_board.selected_ship() is None
        assert stored(engine)["state"]["player1"] == engine.my_board.save()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
