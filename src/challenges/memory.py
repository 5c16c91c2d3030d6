"""
Memory-match challenge handler.

Builds a rows × cols grid of paired symbols, shuffled uniformly.
Matching happens in the browser, so verification is time-bound only.
"""

from __future__ import annotations

import random

from . import ChallengeType, register
from .base import TimedHandler
from .content import ChallengeContent, MemoryContent
from .tables import CatalogTables


@register(ChallengeType.MEMORY_MATCH)
class MemoryHandler(TimedHandler):
    """Handler for memory-match challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        rows, cols = tables.memory_grids[difficulty - 1]
        pairs = (rows * cols) // 2
        if pairs > len(tables.memory_symbols):
            raise ValueError(f"{rows}x{cols} grid needs {pairs} symbols, only {len(tables.memory_symbols)} configured")

        cards = list(tables.memory_symbols[:pairs]) * 2
        # Fisher-Yates: every permutation equally likely
        rng.shuffle(cards)

        return MemoryContent(
            rows=rows,
            cols=cols,
            cards=cards,
            time_limit=tables.memory_base_seconds + tables.memory_seconds_per_level * difficulty,
        )
