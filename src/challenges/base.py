"""
Base protocol and helpers for challenge handlers.
"""

from __future__ import annotations

import random
from typing import Protocol

from .content import ChallengeContent
from .tables import CatalogTables


class ChallengeHandler(Protocol):
    """Protocol for challenge type handlers."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        """Build a payload for an already-clamped difficulty."""
        ...

    def verify(self, content: ChallengeContent, user_answer: str | None, time_taken: float) -> bool:
        """Return True if the attempt succeeds."""
        ...


def within_time_limit(content: ChallengeContent, time_taken: float | None) -> bool:
    """Client-attested challenges only prove they finished before the limit."""
    if time_taken is None or time_taken < 0:
        return False
    return time_taken < content.time_limit


class TimedHandler:
    """Verification shared by handlers whose correctness is attested client-side."""

    def verify(self, content: ChallengeContent, user_answer: str | None, time_taken: float) -> bool:
        return within_time_limit(content, time_taken)
