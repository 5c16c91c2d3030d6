"""
Physical-exercise challenge handler.

Picks an exercise for the difficulty tier. The reps are attested by the
client, so the server only checks the time limit.
"""

from __future__ import annotations

import random

from . import ChallengeType, register
from .base import TimedHandler
from .content import ChallengeContent, ExerciseContent
from .tables import CatalogTables


@register(ChallengeType.PHYSICAL_EXERCISE)
class ExerciseHandler(TimedHandler):
    """Handler for physical-exercise challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        move = rng.choice(tables.exercises[difficulty - 1])
        return ExerciseContent(
            exercise=move.name,
            reps=move.reps,
            description=move.description,
            time_limit=tables.exercise_time_limits[difficulty - 1],
        )
