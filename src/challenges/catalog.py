"""
Challenge Catalog.

Stateless front door over the handler registry:
- generate(type, difficulty): clamp difficulty, build payload, attach XP reward
- verify(content, answer, time_taken): dispatch on the payload variant

The catalog owns no mutable state besides its random source.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from . import HANDLERS, ChallengeType
from .content import ChallengeContent
from .tables import DEFAULT_TABLES, MAX_DIFFICULTY, MIN_DIFFICULTY, CatalogTables


@dataclass(frozen=True)
class GeneratedChallenge:
    """A freshly generated challenge, not yet persisted."""

    type: ChallengeType
    difficulty: int
    content: ChallengeContent
    xp_reward: int


def clamp_difficulty(difficulty: int | None) -> int:
    """Force a difficulty into [1, 5]; None means the default of 2."""
    if difficulty is None:
        difficulty = 2
    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, int(difficulty)))


def to_challenge_type(value: str | ChallengeType) -> ChallengeType:
    """Coerce a wire value to ChallengeType (raises ValueError if unknown)."""
    if isinstance(value, ChallengeType):
        return value
    return ChallengeType(str(value).strip().lower())


class ChallengeCatalog:
    """Generates and verifies challenges of every registered type."""

    def __init__(self, tables: CatalogTables = DEFAULT_TABLES, rng: random.Random | None = None):
        self.tables = tables
        self.rng = rng or random.Random()

    def xp_reward(self, challenge_type: str | ChallengeType, difficulty: int) -> int:
        """XP awarded for a successful challenge of this type and difficulty."""
        challenge_type = to_challenge_type(challenge_type)
        return self.tables.reward(challenge_type.value, clamp_difficulty(difficulty))

    def generate(self, challenge_type: str | ChallengeType, difficulty: int | None = 2) -> GeneratedChallenge:
        """
        Generate a challenge payload.

        Args:
            challenge_type: Challenge type (enum or wire value)
            difficulty: Requested difficulty; clamped to [1, 5]

        Raises:
            ValueError: If the type is unknown
        """
        challenge_type = to_challenge_type(challenge_type)
        level = clamp_difficulty(difficulty)
        content = HANDLERS[challenge_type].generate(level, self.rng, self.tables)
        return GeneratedChallenge(
            type=challenge_type,
            difficulty=level,
            content=content,
            xp_reward=self.tables.reward(challenge_type.value, level),
        )

    def verify(self, content: ChallengeContent, user_answer: str | None, time_taken: float | None) -> bool:
        """Decide an attempt; the payload's ``kind`` picks the verifier."""
        handler = HANDLERS[ChallengeType(content.kind)]
        return handler.verify(content, user_answer, time_taken)
