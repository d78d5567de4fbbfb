# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Random assignment helpers.

Uniform sampling used for fleet randomization and the shuffled shot order of
the computer opponent.
"""

import random
from typing import List, MutableSequence, Optional, Tuple, TypeVar

T = TypeVar("T")


def shuffle(items: MutableSequence[T], rng: Optional[random.Random] = None) -> MutableSequence[T]:
    """
    Shuffle a sequence in place with the Fisher-Yates algorithm.

    Args:
        items: Sequence to shuffle
        rng: Random source (module-level random if omitted)

    Returns:
        The same sequence, for chaining.
    """
    rng = rng or random.Random()
    i = len(items) - 1
    while i > 0:
        j = rng.randint(0, i)
        items[i], items[j] = items[j], items[i]
        i -= 1
    return items


def shuffled_cells(board_size: int, rng: Optional[random.Random] = None) -> List[Tuple[int, int]]:
    """Return every (x, y) cell of the board in uniformly random order."""
    cells = [(x, y) for y in range(board_size) for x in range(board_size)]
    shuffle(cells, rng)
    return cells


def random_orientation(rng: random.Random) -> bool:
    """Return True for vertical, False for horizontal."""
    return rng.choice([True, False])


def random_origin(board_size: int, rng: random.Random) -> Tuple[int, int]:
    return rng.randint(0, board_size - 1), rng.randint(0, board_size - 1)
