# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Per-client session context: which game, which player, which role.
"""

import random
import string
from dataclasses import dataclass
from typing import Optional

from game.store import StoreRef

ID_ALPHABET = string.ascii_letters + string.digits


def make_id(length: int = 5, rng: Optional[random.Random] = None) -> str:
    """Generate a short alphanumeric id for a game or a player."""
    rng = rng or random.Random()
    return "".join(rng.choice(ID_ALPHABET) for _ in range(length))


@dataclass
class SessionContext:
    """
    Role of this client in one game.

    ``is_player1`` is fixed once the client has created or joined the game and
    decides which stored slot ("player1"/"player2") holds the local board.
    """
    game_id: str
    player_id: str
    ref: StoreRef
    is_player1: bool = True
    opponent_id: Optional[str] = None

    @property
    def my_slot(self) -> str:
        return "player1" if self.is_player1 else "player2"

    @property
    def opponent_slot(self) -> str:
        return "player2" if self.is_player1 else "player1"
