"""
Sliding-tile puzzle handler.

The board starts solved and is scrambled with random legal moves, so every
generated board is solvable. The solve itself is checked client-side.
"""

from __future__ import annotations

import random

from . import ChallengeType, register
from .base import TimedHandler
from .content import ChallengeContent, PuzzleContent
from .tables import CatalogTables


def solved_board(size: int) -> list[int]:
    """Row-major solved board with the blank (0) last."""
    return list(range(1, size * size)) + [0]


def _neighbours(index: int, size: int) -> list[int]:
    row, col = divmod(index, size)
    result = []
    if row > 0:
        result.append(index - size)
    if row < size - 1:
        result.append(index + size)
    if col > 0:
        result.append(index - 1)
    if col < size - 1:
        result.append(index + 1)
    return result


def scramble(size: int, moves: int, rng: random.Random) -> list[int]:
    """Apply ``moves`` random slides to a solved board, never undoing the last one."""
    tiles = solved_board(size)
    blank = tiles.index(0)
    previous = None
    for _ in range(moves):
        choices = [n for n in _neighbours(blank, size) if n != previous]
        target = rng.choice(choices)
        tiles[blank], tiles[target] = tiles[target], tiles[blank]
        previous, blank = blank, target
    return tiles


@register(ChallengeType.PUZZLE)
class PuzzleHandler(TimedHandler):
    """Handler for sliding-tile puzzles."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        size, moves = tables.puzzle_boards[difficulty - 1]
        return PuzzleContent(
            size=size,
            tiles=scramble(size, moves, rng),
            scramble_moves=moves,
            time_limit=tables.puzzle_time_limits[difficulty - 1],
        )
