# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Game engine module.

Turn state machine for one client. The engine owns the local player's board
and its copy of the opponent's board, decides what a selected square means in
the current state, resolves shots into turn hand-offs, and writes both boards
to the shared store after every shot.

Turn hand-off rule: a hit keeps the shooter's turn, a miss passes it.
"""

import logging
import random
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union

from game.board import BOARD_SIZE, Board, ShotResult
from game.context import SessionContext
from game.errors import GameLogicError
from game.random_assignment import shuffled_cells

logger = logging.getLogger(__name__)


class GameState(str, Enum):
    """Turn state of one client, from that client's point of view."""
    INIT = "init"
    CHOOSING_POSITIONS = "choosing-positions"
    PLAYER1_TURN = "player1-turn"
    PLAYER2_TURN = "player2-turn"
    PLAYER_WON = "player-won"
    PLAYER_LOST = "player-lost"


TERMINAL_STATES = (GameState.PLAYER_WON, GameState.PLAYER_LOST)

StateListener = Callable[[GameState], None]
ShotListener = Callable[[bool, int, int, Union[ShotResult, bool]], None]


class GameEngine:
    """
    Turn state machine for one of the two players.

    ``player1-turn`` always means "this client may fire" and ``player2-turn``
    "waiting for the opponent", whichever slot this client occupies in the
    shared store. ``context.is_player1`` only decides which stored slot holds
    the local board.
    """

    def __init__(
        self,
        context: SessionContext,
        rng: Optional[random.Random] = None,
        max_attempts: int = 1000,
    ):
        """
        Initialize the engine.

        Args:
            context: Session role and store handle for this client.
            rng: Random source for fleet placement and the computer
                opponent's shot order.
            max_attempts: Random placement tries per ship.
        """
        self.context = context
        self.rng = rng or random.Random()
        self.max_attempts = max_attempts

        self.state = GameState.INIT
        self.my_board: Optional[Board] = None
        self.opponent_board: Optional[Board] = None

        self._state_listener: Optional[StateListener] = None
        self._shot_listener: Optional[ShotListener] = None

        # Cells this client has fired at in the current game
        self._attempted: Set[Tuple[int, int]] = set()

        # Shot order for the computer opponent, consumed from the end
        self._random_turns: List[Tuple[int, int]] = shuffled_cells(BOARD_SIZE, self.rng)

    # -- observers ---------------------------------------------------------

    def on_state_change(self, callback: Optional[StateListener]) -> None:
        """Register the state listener, replacing any previous one."""
        self._state_listener = callback

    def on_shot_taken(self, callback: Optional[ShotListener]) -> None:
        """Register the shot listener, replacing any previous one."""
        self._shot_listener = callback

    def _set_state(self, state: GameState) -> None:
        logger.debug(f"{self.context.player_id}: {self.state.value} -> {state.value}")
        self.state = state
        if self._state_listener is not None:
            self._state_listener(state)

    # -- board setup -------------------------------------------------------

    @property
    def player(self) -> Optional[Board]:
        """The local player's board."""
        return self.my_board

    @property
    def is_over(self) -> bool:
        return self.state in TERMINAL_STATES

    def create_boards(self) -> None:
        self.my_board = Board(max_attempts=self.max_attempts)
        self.opponent_board = Board(max_attempts=self.max_attempts)
        self._attempted = set()

    def new_game(self) -> None:
        """Create both boards with randomly placed fleets."""
        self.create_boards()
        self.my_board.choose_random_ship_locations(self.rng)
        self.opponent_board.choose_random_ship_locations(self.rng)
        logger.info(f"New game {self.context.game_id} created by {self.context.player_id}")

    def restore_boards(self, snapshot: Optional[Dict[str, Any]]) -> None:
        """
        Load both boards from the stored ``state`` record.

        The slot matching this client's role becomes the local board.
        """
        if self.my_board is None or self.opponent_board is None:
            self.create_boards()
        snapshot = snapshot or {}
        self.my_board.restore(snapshot.get(self.context.my_slot))
        self.opponent_board.restore(snapshot.get(self.context.opponent_slot))

    def start_game(self) -> None:
        """Finish placement and publish the fleets."""
        if self.my_board is not None:
            self.my_board.select_ship(None)
        self.save_state()
        logger.info(f"Game {self.context.game_id} started for {self.context.player_id}")

    def choose_random_ship_locations(self) -> None:
        if self.my_board is not None:
            self.my_board.choose_random_ship_locations(self.rng)

    def rotate_selected_ship(self) -> None:
        if self.my_board is not None:
            self.my_board.rotate_selected_ship()

    def move_selected_ship(self, x: int, y: int) -> bool:
        if self.my_board is None:
            return False
        return self.my_board.move_selected_ship(x, y)

    # -- turn state --------------------------------------------------------

    def choose_positions(self) -> None:
        self._set_state(GameState.CHOOSING_POSITIONS)

    def player1_turn(self) -> None:
        self._set_state(GameState.PLAYER1_TURN)

    def player2_turn(self) -> None:
        self._set_state(GameState.PLAYER2_TURN)

    def turn(self) -> None:
        if self.context.is_player1:
            self.player1_turn()
        else:
            self.player2_turn()

    def square_selected(self, is_my_board: bool, x: int, y: int) -> bool:
        """
        Handle a player selecting a square.

        On the local board during placement this selects or moves a ship. On
        the opponent's board during this client's turn it fires, unless the
        square was already fired at. Anything else is ignored.

        Returns:
            True if the selection changed anything.
        """
        if not Board.in_bounds(x, y):
            return False

        if is_my_board and self.state == GameState.CHOOSING_POSITIONS:
            key = self.my_board.ship_at_square(x, y)
            if key is None and self.my_board.selected_ship() is not None:
                return self.my_board.move_selected_ship(x, y)
            if key is not None:
                self.my_board.select_ship(key)
                return True
            return False

        if not is_my_board and self.state == GameState.PLAYER1_TURN:
            if (x, y) in self._attempted:
                return False
            self._attempted.add((x, y))
            result = self.opponent_board.take_shot(x, y)
            self._shot_taken(True, x, y, result)
            return True

        return False

    def take_ai_turn(self) -> Tuple[int, int]:
        """
        Fire the computer opponent's next shot at the local board.

        Returns:
            The (x, y) fired at.

        Raises:
            GameLogicError: If every cell has already been fired at.
        """
        if not self._random_turns:
            logger.error("Computer opponent ran out of cells while the game is still open")
            raise GameLogicError("No cells left for the computer opponent")
        x, y = self._random_turns.pop()
        result = self.my_board.take_shot(x, y)
        self._shot_taken(False, x, y, result)
        return x, y

    def _shot_taken(self, is_local_shooter: bool, x: int, y: int, result: Union[ShotResult, bool]) -> None:
        if self._shot_listener is not None:
            self._shot_listener(is_local_shooter, x, y, result)
        self.save_state()
        self.shot_taken_result(is_local_shooter, result)

    def shot_taken_result(self, is_local_shooter: bool, result: Union[ShotResult, bool]) -> None:
        """
        Move to the next state after a resolved shot.

        A winning shot ends the game. Otherwise a hit leaves the turn with the
        shooter and a miss hands it to the other side.
        """
        if self.is_over:
            return

        hit = isinstance(result, ShotResult)
        if hit and result.won_game:
            self._set_state(GameState.PLAYER_WON if is_local_shooter else GameState.PLAYER_LOST)
            return

        if hit:
            return
        if is_local_shooter:
            self.done_with_turn()
        else:
            self.context.ref.set("turn", self.context.player_id)
            self.player1_turn()

    def check_game_over(self) -> None:
        """Enter a terminal state if either fleet is already destroyed."""
        if self.is_over or self.my_board is None:
            return
        if self.my_board.all_ships_dead():
            self._set_state(GameState.PLAYER_LOST)
        elif self.opponent_board.all_ships_dead():
            self._set_state(GameState.PLAYER_WON)

    # -- store synchronization ---------------------------------------------

    def save_state(self) -> None:
        """Write both boards to the shared store under their role slots."""
        if self.my_board is None or self.opponent_board is None:
            raise GameLogicError("Cannot save state before the boards exist")
        state = {
            self.context.my_slot: self.my_board.save(),
            self.context.opponent_slot: self.opponent_board.save(),
        }
        logger.debug(f"{self.context.player_id}: saving state")
        self.context.ref.set("state", state)

    def done_with_turn(self) -> None:
        """Hand the turn marker to the opponent and wait."""
        logger.info(f"{self.context.player_id}: done with turn, passing to {self.context.opponent_id}")
        self.context.ref.set("turn", self.context.opponent_id)
        self.player2_turn()
