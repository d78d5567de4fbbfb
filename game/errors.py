# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Exceptions for the game core.

Illegal moves are never exceptions; they are reported through ``False``
return values. Only broken internal invariants raise.
"""


class GameLogicError(RuntimeError):
    """Raised when an internal game invariant is violated."""
