# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Create/join protocol over the shared store.

The first client to open a game id becomes player 1: it writes its id and the
initial fleets, then waits for a ``player2`` child to appear before taking
the first turn. The second client becomes player 2: it writes its id, loads
the stored fleets and waits for the turn marker to name it.

After that, both clients only react to two kinds of change:
- ``turn`` now holds this client's id: it may fire. A polled store can
  report the marker as a new child, so both events are handled.
- ``state`` changed: reload both boards and check for a finished game
"""

import logging
from typing import Any, Dict

from game.context import SessionContext
from game.engine import GameEngine, GameState

logger = logging.getLogger(__name__)


class GameSession:
    """Connects one GameEngine to its game record in the shared store."""

    def __init__(self, engine: GameEngine):
        self.engine = engine
        self.context: SessionContext = engine.context

    @property
    def ref(self):
        return self.context.ref

    def start(self) -> bool:
        """
        Create the game, or join it if it already exists.

        Returns:
            True if this client created the game (player 1).
        """
        data = self.ref.get_once()
        self.ref.on_child_changed(self._child_changed)
        if data is None:
            self._create()
            return True
        self._join(data)
        return False

    def _create(self) -> None:
        self.context.is_player1 = True
        self.ref.set("player1", self.context.player_id)
        self.engine.new_game()
        self.engine.save_state()
        self.engine.choose_positions()
        logger.info(f"Game {self.context.game_id} created, waiting for opponent")
        self.ref.on_child_added(self._child_added)

    def _join(self, data: Dict[str, Any]) -> None:
        self.context.is_player1 = False
        self.context.opponent_id = data.get("player1")
        logger.info(f"Joining game {self.context.game_id}, opponent: {self.context.opponent_id}")
        self.engine.player2_turn()
        self.engine.create_boards()
        self.engine.restore_boards(data.get("state"))
        self.ref.on_child_added(self._child_added)
        self.ref.set("player2", self.context.player_id)
        self.engine.start_game()

    def _child_added(self, key: str, value: Any) -> None:
        if key == "turn":
            self._turn_changed(value)
        elif key == "player2" and self.context.is_player1 and self.context.opponent_id is None:
            self._opponent_joined(value)

    def _child_changed(self, key: str, value: Any) -> None:
        if key == "turn":
            self._turn_changed(value)
        elif key == "state":
            logger.debug(f"{self.context.player_id}: restoring state")
            self.engine.restore_boards(value)
            self.engine.check_game_over()

    def _opponent_joined(self, opponent_id: str) -> None:
        logger.info(f"Opponent joined: {opponent_id}")
        self.context.opponent_id = opponent_id
        self.engine.start_game()
        self.engine.player1_turn()
        self.ref.set("turn", self.context.player_id)

    def _turn_changed(self, value: Any) -> None:
        if value != self.context.player_id or self.engine.is_over:
            return
        if self.engine.state != GameState.PLAYER1_TURN:
            logger.info(f"{self.context.player_id}: my turn now")
            self.engine.player1_turn()
