"""
Collaborator stores.

Thin SQLAlchemy access to the rows the gating engine reads but does not own:
users (progression columns), challenge settings and focus sessions.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.db.models import ChallengeSettings, FocusSession, User

from .errors import GatingError, RejectReason


@dataclass(frozen=True)
class EffectiveChallengeSettings:
    """Challenge settings after falling back to process defaults."""

    enabled: bool
    allowed_types: tuple[str, ...]
    difficulty: int
    unlock_duration: int
    max_unlocks_per_session: int
    cooldown_minutes: int

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> EffectiveChallengeSettings:
        return cls(
            enabled=bool(values["enabled"]),
            allowed_types=tuple(values["allowed_types"]),
            difficulty=int(values["difficulty"]),
            unlock_duration=int(values["unlock_duration"]),
            max_unlocks_per_session=int(values["max_unlocks_per_session"]),
            cooldown_minutes=int(values["cooldown_minutes"]),
        )

    @classmethod
    def from_row(cls, row: ChallengeSettings, defaults: EffectiveChallengeSettings) -> EffectiveChallengeSettings:
        """Row values win; NULLs fall back to ``defaults``."""

        def pick(name: str) -> Any:
            value = getattr(row, name)
            return getattr(defaults, name) if value is None else value

        return cls(
            enabled=bool(pick("enabled")),
            allowed_types=tuple(pick("allowed_types")),
            difficulty=int(pick("difficulty")),
            unlock_duration=int(pick("unlock_duration")),
            max_unlocks_per_session=int(pick("max_unlocks_per_session")),
            cooldown_minutes=int(pick("cooldown_minutes")),
        )


class UserStore:
    """Progression reads and the per-user serialization point."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: UUID) -> User | None:
        return self.db.get(User, user_id)

    def lock(self, user_id: UUID) -> User:
        """
        Load the user row for update and bump its revision.

        On PostgreSQL the row lock queues concurrent writers for this user.
        Everywhere, the flushed ``UPDATE ... WHERE revision = old`` fails with
        StaleDataError if another transaction got there first.
        """
        stmt = (
            select(User)
            .where(User.id == user_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        user = self.db.scalars(stmt).first()
        if user is None:
            raise GatingError(RejectReason.USER_NOT_FOUND, "User not found", user_id=str(user_id))
        user.revision = (user.revision or 0) + 1
        self.db.flush()
        return user


class SettingsStore:
    """Read-only access to per-user challenge settings."""

    def __init__(self, db: Session):
        self.db = db

    def effective(self, user_id: UUID, defaults: EffectiveChallengeSettings) -> EffectiveChallengeSettings:
        row = self.db.scalars(
            select(ChallengeSettings).where(ChallengeSettings.user_id == user_id)
        ).first()
        if row is None:
            return defaults
        return EffectiveChallengeSettings.from_row(row, defaults)


class FocusSessionStore:
    """Focus-session lookups and creation."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, session_id: UUID) -> FocusSession | None:
        return self.db.get(FocusSession, session_id)

    def open_for(self, user_id: UUID) -> FocusSession | None:
        """The user's open session, newest first if the invariant was ever broken."""
        stmt = (
            select(FocusSession)
            .where(FocusSession.user_id == user_id, FocusSession.end_time.is_(None))
            .order_by(FocusSession.start_time.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    def create(self, user_id: UUID, start_time: datetime, source: str = "extension") -> FocusSession:
        session = FocusSession(user_id=user_id, start_time=start_time, source=source)
        self.db.add(session)
        self.db.flush()
        return session
