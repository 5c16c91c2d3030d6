"""
Challenge type handlers for focus-gate unlocks.

Each challenge type (math, memory, typing, etc.) has its own module with:
- generate(): Build a payload for a difficulty
- verify(): Decide whether a submitted attempt succeeds
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import ChallengeHandler


class ChallengeType(str, Enum):
    """Supported challenge types."""
    ARITHMETIC = "math"
    MEMORY_MATCH = "memory"
    TYPED_PASSAGE = "typing"
    PHYSICAL_EXERCISE = "exercise"
    BREATHING_PATTERN = "breathing"
    PUZZLE = "puzzle"
    REACTION_TIME = "reaction"


# Handler registry - populated by @register decorator
HANDLERS: dict[ChallengeType, "ChallengeHandler"] = {}


def register(challenge_type: ChallengeType):
    """Decorator to register a challenge handler."""
    def decorator(cls):
        HANDLERS[challenge_type] = cls()
        return cls
    return decorator


def get_handler(challenge_type: str | ChallengeType) -> "ChallengeHandler | None":
    """Get the handler for a challenge type."""
    if isinstance(challenge_type, str) and not isinstance(challenge_type, ChallengeType):
        try:
            challenge_type = ChallengeType(challenge_type.strip().lower())
        except ValueError:
            return None
    return HANDLERS.get(challenge_type)


# Import handlers to trigger registration
from . import arithmetic
from . import memory
from . import typing_passage
from . import exercise
from . import breathing
from . import puzzle
from . import reaction

from .catalog import ChallengeCatalog, GeneratedChallenge

__all__ = [
    "ChallengeCatalog",
    "ChallengeType",
    "GeneratedChallenge",
    "HANDLERS",
    "get_handler",
    "register",
]
