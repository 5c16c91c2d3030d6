"""
User-side models.

The user store and the settings store belong to collaborators (account and
settings CRUD). The gating engine only reads challenge settings and writes
the progression columns on User.

- User: identity plus xp / level / streak progression
- ChallengeSettings: per-user challenge configuration
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.clock import utcnow

from .base import Base, JSONType


class User(Base):
    """
    A user and their progression.

    ``level`` is always level_from_xp(xp); it is stored for cheap reads only.
    ``revision`` is bumped by every gating write and checked on UPDATE, which
    makes this row the per-user serialization point.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str | None] = mapped_column(Text, unique=True)
    name: Mapped[str | None] = mapped_column(Text)

    # Gamification
    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_focus_date: Mapped[datetime | None] = mapped_column()

    revision: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    challenge_settings: Mapped["ChallengeSettings | None"] = relationship(
        back_populates="user", uselist=False
    )

    __mapper_args__ = {
        "version_id_col": revision,
        "version_id_generator": False,
    }

    __table_args__ = (
        CheckConstraint("xp >= 0", name="ck_users_xp_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} xp={self.xp} level={self.level} streak={self.streak}>"


class ChallengeSettings(Base):
    """Challenge configuration for one user (defaults come from config when absent)."""

    __tablename__ = "challenge_settings"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allowed_types: Mapped[list] = mapped_column(
        JSONType, default=lambda: ["math", "memory", "typing"], nullable=False
    )
    difficulty: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    unlock_duration: Mapped[int] = mapped_column(Integer, default=15, nullable=False)  # minutes
    max_unlocks_per_session: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    cooldown_minutes: Mapped[int] = mapped_column(Integer, default=5, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)

    user: Mapped[User] = relationship(back_populates="challenge_settings")

    __table_args__ = (
        CheckConstraint("difficulty BETWEEN 1 AND 5", name="ck_challenge_settings_difficulty"),
        CheckConstraint("unlock_duration BETWEEN 5 AND 60", name="ck_challenge_settings_unlock_duration"),
        CheckConstraint("max_unlocks_per_session BETWEEN 1 AND 10", name="ck_challenge_settings_max_unlocks"),
        CheckConstraint("cooldown_minutes BETWEEN 0 AND 30", name="ck_challenge_settings_cooldown"),
    )

    def __repr__(self) -> str:
        return f"<ChallengeSettings user={self.user_id} enabled={self.enabled} types={self.allowed_types}>"
