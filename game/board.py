# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Board logic module.

Provides one player's side of the game:
- Fleet of five catalog ships with placement and collision rules
- Incoming shot handling with hit/miss/destroyed detection
- Snapshot save/restore for exchange through the shared store
- Text rendering for the terminal client
"""

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np

from game.errors import GameLogicError
from game.random_assignment import random_orientation, random_origin

logger = logging.getLogger(__name__)

BOARD_SIZE = 10
ROW_LABELS = "ABCDEFGHIJ"


class CellState(IntEnum):
    """State of a cell on the board, as stored in snapshots."""
    EMPTY = 0
    HIT = 1
    MISS = 2


# (catalog key, display name, size)
SHIP_CATALOG: List[Tuple[str, str, int]] = [
    ("sub", "Interceptor", 3),
    ("battleShip", "Excelsior", 4),
    ("carrier", "BattleStar", 5),
    ("destroyer", "Intrepid Ship", 3),
    ("patrol", "Defiant Boat", 2),
]


def validate_catalog(catalog: Iterable[Tuple[str, str, int]]) -> Dict[str, Tuple[str, int]]:
    """
    Check a ship catalog and index it by key.

    Raises:
        GameLogicError: If a key is missing or duplicated, or a size does not
            fit on the board.
    """
    entries: Dict[str, Tuple[str, int]] = {}
    for key, name, size in catalog:
        if not key:
            raise GameLogicError(f"Ship catalog entry '{name}' has no key")
        if key in entries:
            raise GameLogicError(f"Duplicate ship catalog key: {key}")
        if not (1 <= size <= BOARD_SIZE):
            raise GameLogicError(f"Ship {key} has invalid size {size}")
        entries[key] = (name, size)
    if not entries:
        raise GameLogicError("Ship catalog is empty")
    return entries


@dataclass
class Ship:
    """A ship on the board, anchored at its origin cell."""
    key: str
    name: str
    size: int
    x: int = 0
    y: int = 0
    vertical: bool = False
    hits: int = 0
    dead: bool = False

    def cells(self, x: Optional[int] = None, y: Optional[int] = None) -> List[Tuple[int, int]]:
        """Cells covered by the ship, or by the ship if its origin were (x, y)."""
        x = self.x if x is None else x
        y = self.y if y is None else y
        if self.vertical:
            return [(x, y + i) for i in range(self.size)]
        return [(x + i, y) for i in range(self.size)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "location": {"x": self.x, "y": self.y},
            "vertical": self.vertical,
            "dead": self.dead,
            "hits": self.hits,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, key: str, data: Dict[str, Any]) -> "Ship":
        """Build a ship from its snapshot form, defaulting absent fields."""
        location = data.get("location") or {}
        catalog = {k: (name, size) for k, name, size in SHIP_CATALOG}
        default_name, default_size = catalog.get(key, (key, 0))
        return cls(
            key=key,
            name=data.get("name", default_name),
            size=int(data.get("size", default_size)),
            x=int(location.get("x", 0)),
            y=int(location.get("y", 0)),
            vertical=bool(data.get("vertical", False)),
            hits=int(data.get("hits", 0)),
            dead=bool(data.get("dead", False)),
        )


@dataclass(frozen=True)
class ShipView:
    """What a shooter learns about the ship it hit."""
    name: str
    destroyed: bool


@dataclass(frozen=True)
class ShotResult:
    """Outcome of a shot that hit a ship."""
    won_game: bool
    ship: ShipView

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wonGame": self.won_game,
            "ship": {"name": self.ship.name, "destroyed": self.ship.destroyed},
        }


def parse_coordinate(coord: str) -> Tuple[int, int]:
    """
    Parse a coordinate string like 'A5' or 'J10' into (x, y).

    The letter selects the row (y) and the number the column (x).

    Raises:
        ValueError: If the coordinate is invalid.
    """
    coord = coord.strip().upper()

    if len(coord) < 2 or len(coord) > 3:
        raise ValueError(f"Invalid coordinate format: {coord}")

    row_char = coord[0]
    col_str = coord[1:]

    if row_char not in ROW_LABELS:
        raise ValueError(f"Invalid row '{row_char}'. Must be A-J.")

    try:
        col_num = int(col_str)
    except ValueError:
        raise ValueError(f"Invalid column '{col_str}'. Must be 1-10.")

    if not (1 <= col_num <= BOARD_SIZE):
        raise ValueError(f"Column {col_num} out of range. Must be 1-10.")

    return col_num - 1, ROW_LABELS.index(row_char)


def format_coordinate(x: int, y: int) -> str:
    """Convert (x, y) to a coordinate string like 'A5'."""
    return f"{ROW_LABELS[y]}{x + 1}"


class Board:
    """
    One player's fleet and the record of shots fired against it.

    The grid is indexed ``[y, x]`` and only records shot outcomes; ship
    occupancy is always derived from the ships' origin, orientation and size.
    """

    def __init__(
        self,
        catalog: Optional[List[Tuple[str, str, int]]] = None,
        max_attempts: int = 1000,
    ):
        """
        Initialize an empty board with no ships.

        Args:
            catalog: Ship catalog as (key, name, size) tuples.
            max_attempts: Random placement tries per ship before falling
                back to a deterministic scan.
        """
        self.catalog = catalog if catalog is not None else SHIP_CATALOG
        self._catalog_index = validate_catalog(self.catalog)
        self.max_attempts = max_attempts

        self.ships: Dict[str, Ship] = {}
        self.board_state = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.int8)
        self.shots_taken: List[Tuple[int, int]] = []
        self._selected: Optional[str] = None

    @staticmethod
    def in_bounds(x: int, y: int) -> bool:
        return 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE

    def new_ship(self, key: str) -> Ship:
        """Create a fresh, unplaced ship for a catalog key."""
        if key not in self._catalog_index:
            raise GameLogicError(f"Unknown ship catalog key: {key}")
        name, size = self._catalog_index[key]
        return Ship(key=key, name=name, size=size)

    def ship_at_square(self, x: int, y: int) -> Optional[str]:
        """Return the key of the ship covering (x, y), or None."""
        for key, ship in self.ships.items():
            if (x, y) in ship.cells():
                return key
        return None

    def move_ship(self, key: str, x: int, y: int) -> bool:
        """
        Move a ship's origin to (x, y), keeping its orientation.

        Returns:
            True if the ship was moved. False, with nothing changed, if any
            cell would leave the board or overlap a different ship.
        """
        ship = self.ships.get(key)
        if ship is None:
            return False

        others = [other for other_key, other in self.ships.items() if other_key != key]
        for cx, cy in ship.cells(x, y):
            if not self.in_bounds(cx, cy):
                return False
            if any((cx, cy) in other.cells() for other in others):
                return False

        ship.x = x
        ship.y = y
        return True

    def move_selected_ship(self, x: int, y: int) -> bool:
        if self._selected is None:
            return False
        return self.move_ship(self._selected, x, y)

    def place_ship(self, key: str, x: int, y: int, vertical: bool = False) -> bool:
        """
        Put a fresh catalog ship at (x, y).

        The ship is only added to the fleet if the placement is legal.
        """
        previous = self.ships.get(key)
        ship = self.new_ship(key)
        ship.vertical = vertical
        self.ships[key] = ship
        if self.move_ship(key, x, y):
            return True
        if previous is None:
            del self.ships[key]
        else:
            self.ships[key] = previous
        return False

    def rotate_selected_ship(self) -> None:
        """Flip the selected ship's orientation. Legality is not re-checked."""
        if self._selected is not None and self._selected in self.ships:
            ship = self.ships[self._selected]
            ship.vertical = not ship.vertical

    def choose_random_ship_locations(self, rng: Optional[random.Random] = None) -> None:
        """
        Place a fresh copy of every catalog ship at a random legal position.

        Each ship is rejection-sampled (random orientation and origin) up to
        ``max_attempts`` times, then placed by scanning the board in order.
        """
        rng = rng or random.Random()
        self.ships = {}
        self._selected = None

        for key, _name, _size in self.catalog:
            placed = False
            attempts = 0
            while not placed and attempts < self.max_attempts:
                attempts += 1
                x, y = random_origin(BOARD_SIZE, rng)
                placed = self.place_ship(key, x, y, random_orientation(rng))

            if not placed:
                logger.warning(f"Random placement of {key} gave up after {attempts} attempts, scanning")
                placed = self._place_by_scan(key)

            if not placed:
                raise GameLogicError(f"Failed to place ship {key}")

        if set(self.ships) != set(self._catalog_index):
            raise GameLogicError("Fleet does not match the ship catalog")

    def _place_by_scan(self, key: str) -> bool:
        for vertical in (False, True):
            for y in range(BOARD_SIZE):
                for x in range(BOARD_SIZE):
                    if self.place_ship(key, x, y, vertical):
                        return True
        return False

    def take_shot(self, x: int, y: int) -> Union[ShotResult, bool]:
        """
        Fire at (x, y).

        Returns:
            False on a miss. On a hit, a ShotResult with the hit ship and
            whether every ship on this board is now destroyed.
        """
        if not self.in_bounds(x, y):
            return False

        self.shots_taken.append((x, y))
        key = self.ship_at_square(x, y)
        if key is None:
            self.board_state[y, x] = CellState.MISS
            return False

        self.board_state[y, x] = CellState.HIT
        ship = self.ships[key]
        ship.hits += 1
        if ship.hits == ship.size:
            ship.dead = True

        return ShotResult(
            won_game=self.all_ships_dead(),
            ship=ShipView(name=ship.name, destroyed=ship.dead),
        )

    def all_ships_dead(self) -> bool:
        return bool(self.ships) and all(ship.dead for ship in self.ships.values())

    def select_ship(self, key: Optional[str]) -> None:
        self._selected = key

    def selected_ship(self) -> Optional[str]:
        return self._selected

    def cell(self, x: int, y: int) -> CellState:
        return CellState(int(self.board_state[y, x]))

    def save(self) -> Dict[str, Any]:
        """Serialize ships, grid and shot log to a JSON-safe dict."""
        return {
            "ships": {key: ship.to_dict() for key, ship in self.ships.items()},
            "boardState": {
                str(y): {str(x): int(self.board_state[y, x]) for x in range(BOARD_SIZE)}
                for y in range(BOARD_SIZE)
            },
            "shotsTaken": [{"x": x, "y": y} for x, y in self.shots_taken],
        }

    def restore(self, snapshot: Optional[Dict[str, Any]]) -> None:
        """
        Replace this board's contents with a saved snapshot.

        Absent fields fall back to an empty fleet, an empty grid or an empty
        shot log. Grid rows may be dicts (string or int keys) or lists.
        """
        snapshot = snapshot or {}

        ships = snapshot.get("ships") or {}
        self.ships = {key: Ship.from_dict(key, data) for key, data in ships.items()}

        self.board_state = np.zeros((BOARD_SIZE, BOARD_SIZE), dtype=np.int8)
        for y, row in _items(snapshot.get("boardState")):
            for x, value in _items(row):
                if self.in_bounds(x, y):
                    self.board_state[y, x] = int(value)

        # Shots without both coordinates are dropped
        shots = snapshot.get("shotsTaken") or []
        self.shots_taken = [
            (int(shot["x"]), int(shot["y"]))
            for shot in shots
            if isinstance(shot, dict) and "x" in shot and "y" in shot
        ]

        if self._selected not in self.ships:
            self._selected = None

    def to_string(self, show_ships: bool = True) -> str:
        """
        Get the board as an ASCII grid.

        '#' marks an intact ship cell (only with show_ships), 'X' a hit,
        'O' a miss and '_' an unexplored cell. The selected ship is drawn
        with '@'.
        """
        lines = []

        header = "    |" + "|".join(f"{i:^3}" for i in range(1, BOARD_SIZE + 1))
        lines.append(header)

        for y in range(BOARD_SIZE):
            cells = []
            for x in range(BOARD_SIZE):
                state = self.cell(x, y)
                key = self.ship_at_square(x, y)
                if state == CellState.HIT:
                    symbol = "X"
                elif state == CellState.MISS:
                    symbol = "O"
                elif key is not None and show_ships:
                    symbol = "@" if key == self._selected else "#"
                else:
                    symbol = "_"
                cells.append(f" {symbol} ")
            lines.append(f"  {ROW_LABELS[y]} |" + "|".join(cells))

        return "\n".join(lines)


def _items(container: Any) -> List[Tuple[int, Any]]:
    """Index/value pairs of a dict or list, with integer indices."""
    if not container:
        return []
    if isinstance(container, dict):
        return [(int(k), v) for k, v in container.items() if v is not None]
    return [(i, v) for i, v in enumerate(container) if v is not None]
