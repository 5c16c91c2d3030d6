# SQLAlchemy models
from .base import Base
from .gating import (
    Challenge,
    FocusSession,
    RevokedBy,
    TemporaryUnlock,
)
from .user import (
    ChallengeSettings,
    User,
)

__all__ = [
    # Base
    "Base",
    # Users (collaborator stores)
    "User",
    "ChallengeSettings",
    # Gating
    "FocusSession",
    "Challenge",
    "TemporaryUnlock",
    "RevokedBy",
]
