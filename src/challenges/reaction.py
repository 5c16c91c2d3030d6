"""
Reaction-time challenge handler.

Rounds and the allowed average reaction time tighten with difficulty.
Timing is measured in the browser; the server checks the overall limit.
"""

from __future__ import annotations

import random

from . import ChallengeType, register
from .base import TimedHandler
from .content import ChallengeContent, ReactionContent
from .tables import CatalogTables


@register(ChallengeType.REACTION_TIME)
class ReactionHandler(TimedHandler):
    """Handler for reaction-time challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        max_ms, rounds = tables.reaction_requirements[difficulty - 1]
        return ReactionContent(
            rounds=rounds,
            max_average_ms=max_ms,
            instructions=(
                "Click as fast as you can when the color changes. "
                f"Average reaction time must be under {max_ms}ms across {rounds} rounds."
            ),
            time_limit=tables.reaction_base_seconds + tables.reaction_seconds_per_round * rounds,
        )
