# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Two-player naval combat synchronized through a shared key-value store.
"""

from .board import Board, CellState, Ship, ShipView, ShotResult, SHIP_CATALOG
from .context import SessionContext
from .engine import GameEngine, GameState
from .errors import GameLogicError
from .session import GameSession
from .store import FileStore, MemoryStore

__all__ = [
    'Board',
    'CellState',
    'Ship',
    'ShipView',
    'ShotResult',
    'SHIP_CATALOG',
    'SessionContext',
    'GameEngine',
    'GameState',
    'GameLogicError',
    'GameSession',
    'FileStore',
    'MemoryStore',
]
