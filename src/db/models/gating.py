"""
Distraction-gating models.

Implements:
- FocusSession: a timed interval during which gating is active
- Challenge: a task whose success grants a temporary unlock
- TemporaryUnlock: a time-bounded grant of access to one domain

Lifecycles:
- FocusSession is created open (end_time NULL) and closed exactly once
- Challenge is created on issue and completed exactly once on verify
- TemporaryUnlock is created active; is_active only ever goes true -> false
None of these rows are deleted by the engine.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.clock import utcnow

from .base import Base, JSONType

if TYPE_CHECKING:
    from src.challenges.content import ChallengeContent


class RevokedBy:
    """Values of TemporaryUnlock.revoked_by."""

    USER = "user"
    EXPIRED = "expired"
    SESSION_END = "session_end"

    ALL = (USER, EXPIRED, SESSION_END)


class FocusSession(Base):
    """
    A focus session.

    Open while end_time is NULL. A partial unique index keeps at most one
    open session per user.
    """

    __tablename__ = "focus_sessions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    start_time: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column()
    duration: Mapped[int | None] = mapped_column(Integer)  # minutes, set at close

    distractions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    source: Mapped[str] = mapped_column(Text, default="extension", nullable=False)  # 'extension', 'web'

    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    challenges: Mapped[list["Challenge"]] = relationship(back_populates="session")
    unlocks: Mapped[list["TemporaryUnlock"]] = relationship(back_populates="session")

    __table_args__ = (
        Index(
            "uq_focus_sessions_one_open_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("end_time IS NULL"),
            sqlite_where=text("end_time IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return f"<FocusSession id={self.id} user={self.user_id} open={self.is_open}>"

    @property
    def is_open(self) -> bool:
        return self.end_time is None


class Challenge(Base):
    """
    An issued challenge.

    ``content`` holds the full payload (answer key included) as produced by
    ChallengeContent.to_storage(). Outcome columns stay NULL until verify.
    """

    __tablename__ = "challenges"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("focus_sessions.id", ondelete="CASCADE"), nullable=False
    )

    type: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, default=2, nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False)

    unlocked_domain: Mapped[str] = mapped_column(Text, nullable=False)
    unlock_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes

    # Outcome (set once, at verification)
    completed_at: Mapped[datetime | None] = mapped_column()
    success: Mapped[bool | None] = mapped_column(Boolean)
    time_taken: Mapped[float | None] = mapped_column(Float)  # seconds
    xp_awarded: Mapped[int | None] = mapped_column(Integer)
    user_answer: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    session: Mapped[FocusSession] = relationship(back_populates="challenges")
    unlock: Mapped["TemporaryUnlock | None"] = relationship(back_populates="challenge", uselist=False)

    __table_args__ = (
        Index("idx_challenges_user_created", "user_id", "created_at"),
        Index("idx_challenges_user_type", "user_id", "type"),
        Index("idx_challenges_user_success", "user_id", "success"),
    )

    def __repr__(self) -> str:
        return f"<Challenge id={self.id} type={self.type} difficulty={self.difficulty} success={self.success}>"

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def payload(self) -> ChallengeContent:
        """The stored content parsed back into its typed variant."""
        from src.challenges.content import parse_content

        return parse_content(self.content)


class TemporaryUnlock(Base):
    """
    Temporary access to one domain, produced by one successful challenge.

    Currently valid means is_active and now < expires_at. The expiry sweep
    flips stale rows to inactive with revoked_by='expired'.
    """

    __tablename__ = "temporary_unlocks"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    domain: Mapped[str] = mapped_column(Text, nullable=False)  # normalized
    session_id: Mapped[UUID] = mapped_column(
        ForeignKey("focus_sessions.id", ondelete="CASCADE"), nullable=False
    )
    challenge_id: Mapped[UUID] = mapped_column(
        ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    granted_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Usage tracking
    was_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    first_accessed_at: Mapped[datetime | None] = mapped_column()
    last_accessed_at: Mapped[datetime | None] = mapped_column()

    # Revocation ('user', 'expired', 'session_end')
    revoked_at: Mapped[datetime | None] = mapped_column()
    revoked_by: Mapped[str | None] = mapped_column(Text)

    session: Mapped[FocusSession] = relationship(back_populates="unlocks")
    challenge: Mapped[Challenge] = relationship(back_populates="unlock")

    __table_args__ = (
        Index("idx_unlocks_user_domain_active", "user_id", "domain", "is_active"),
        Index("idx_unlocks_user_session_active", "user_id", "session_id", "is_active"),
        Index("idx_unlocks_expiry", "expires_at", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<TemporaryUnlock id={self.id} domain={self.domain} active={self.is_active}>"
