"""
Breathing-pattern challenge handler.
"""

from __future__ import annotations

import random

from . import ChallengeType, register
from .base import TimedHandler
from .content import BreathingContent, ChallengeContent
from .tables import CatalogTables


@register(ChallengeType.BREATHING_PATTERN)
class BreathingHandler(TimedHandler):
    """Handler for breathing-pattern challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        inhale, hold, exhale, cycles = tables.breathing_patterns[difficulty - 1]
        guided_seconds = (inhale + hold + exhale) * cycles
        return BreathingContent(
            cadence=(inhale, hold, exhale),
            cycles=cycles,
            instructions=(
                f"Breathe in for {inhale}s, hold for {hold}s, exhale for {exhale}s. "
                f"Repeat {cycles} times."
            ),
            time_limit=guided_seconds + tables.breathing_slack_seconds,
        )
