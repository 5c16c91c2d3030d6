"""
Distraction-Gating Engine.

Orchestrates one user's focus sessions, challenges and temporary unlocks:

    Idle --issue--> Challenge-Issued --verify--> Unlock-Granted | Challenge-Failed

Design:
- Every read-then-write operation starts by locking the user row
  (UserStore.lock), so cooldown, cap and XP decisions are serialized per user.
- Challenge completion is a conditional UPDATE on ``completed_at IS NULL``.
- Each public method is one transaction: commit on success, rollback on any
  error, GatingError for refusals.
- Time comes from an injected clock; all stored timestamps are naive UTC.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from config import Settings
from src.challenges import ChallengeCatalog, ChallengeType
from src.core.clock import Clock, local_date, utcnow
from src.core.progression import (
    LevelProgress,
    StreakUpdate,
    apply_streak,
    award_xp,
    is_first_session_today,
    level_progress,
    xp_for_session,
)
from src.db.models import Challenge, FocusSession, RevokedBy, TemporaryUnlock, User

from .errors import GatingError, RejectReason
from .ledger import UnlockLedger, normalize_domain
from .stores import EffectiveChallengeSettings, FocusSessionStore, SettingsStore, UserStore


@dataclass(frozen=True)
class GatingConfig:
    """Process-wide gating configuration, built once at startup."""

    defaults: EffectiveChallengeSettings
    timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings: Settings) -> GatingConfig:
        return cls(
            defaults=EffectiveChallengeSettings.from_mapping(settings.get_challenge_defaults()),
            timezone=settings.progression_timezone,
        )


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class IssuedChallenge:
    challenge: Challenge
    xp_reward: int
    remaining_unlocks: int

    @property
    def public_content(self) -> dict[str, Any]:
        """Payload without the answer key."""
        return self.challenge.payload.public_view()


@dataclass(frozen=True)
class VerificationResult:
    success: bool
    challenge: Challenge
    xp_awarded: int = 0
    unlock: TemporaryUnlock | None = None


@dataclass(frozen=True)
class DomainStatus:
    domain: str
    unlock: TemporaryUnlock | None = None
    remaining_seconds_total: int = 0

    @property
    def is_unlocked(self) -> bool:
        return self.unlock is not None

    @property
    def remaining_minutes(self) -> int:
        return self.remaining_seconds_total // 60

    @property
    def remaining_seconds(self) -> int:
        return self.remaining_seconds_total % 60


@dataclass(frozen=True)
class SessionSummary:
    """Outcome of closing a focus session."""

    session: FocusSession
    session_xp: int
    streak: StreakUpdate
    revoked_unlocks: int
    total_xp: int
    level: int

    @property
    def xp_earned(self) -> int:
        return self.session_xp + self.streak.bonus_xp


@dataclass(frozen=True)
class SessionUnlocks:
    session: FocusSession
    unlocks: Sequence[TemporaryUnlock]
    max_unlocks: int

    @property
    def active_count(self) -> int:
        return sum(1 for u in self.unlocks if u.is_active)

    @property
    def expired_count(self) -> int:
        return len(self.unlocks) - self.active_count

    @property
    def remaining(self) -> int:
        return max(0, self.max_unlocks - len(self.unlocks))


@dataclass
class TypeStats:
    total: int = 0
    successful: int = 0
    xp_earned: int = 0
    average_time: float | None = None

    @property
    def success_rate(self) -> float:
        return round(self.successful / self.total * 100, 1) if self.total else 0.0


@dataclass
class ChallengeStats:
    total: int = 0
    successful: int = 0
    xp_earned: int = 0
    last_seven_days: int = 0
    by_type: dict[str, TypeStats] = field(default_factory=dict)

    @property
    def failed(self) -> int:
        return self.total - self.successful

    @property
    def success_rate(self) -> float:
        return round(self.successful / self.total * 100, 1) if self.total else 0.0


@dataclass(frozen=True)
class UserProgress:
    user: User
    progress: LevelProgress


# =============================================================================
# Engine
# =============================================================================


class GatingEngine:
    """Focus-session, challenge and unlock operations for one database session."""

    def __init__(
        self,
        db: Session,
        config: GatingConfig,
        catalog: ChallengeCatalog | None = None,
        clock: Clock = utcnow,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.config = config
        self.catalog = catalog or ChallengeCatalog()
        self.clock = clock
        self.rng = rng or self.catalog.rng

        self.users = UserStore(db)
        self.settings = SettingsStore(db)
        self.sessions = FocusSessionStore(db)
        self.ledger = UnlockLedger(db, clock)

    @contextmanager
    def _transaction(self, action: str) -> Iterator[None]:
        """Commit on success; roll back and translate lost races otherwise."""
        try:
            yield
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning(f"{action}: concurrent update detected ({exc})")
            raise GatingError(
                RejectReason.CONCURRENT_UPDATE,
                "Another request changed this user's state; retry the operation",
            ) from exc
        except GatingError as exc:
            self.db.rollback()
            logger.info(f"{action} refused [{exc.reason.category}]: {exc.reason.value} ({exc.message})")
            raise
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            self.db.rollback()
            raise

    def challenge_settings(self, user_id: UUID) -> EffectiveChallengeSettings:
        return self.settings.effective(user_id, self.config.defaults)

    # =========================================================================
    # Focus sessions
    # =========================================================================

    def start_session(self, user_id: UUID, source: str = "extension") -> FocusSession:
        """Open a focus session; at most one may be open per user."""
        with self._transaction("start_session"):
            self.users.lock(user_id)
            existing = self.sessions.open_for(user_id)
            if existing is not None:
                raise GatingError(
                    RejectReason.SESSION_ALREADY_OPEN,
                    "A focus session is already in progress",
                    session_id=str(existing.id),
                )
            try:
                session = self.sessions.create(user_id, self.clock(), source)
            except IntegrityError as exc:
                raise GatingError(
                    RejectReason.SESSION_ALREADY_OPEN,
                    "A focus session is already in progress",
                ) from exc

        logger.info(f"Started focus session {session.id} for user {user_id}")
        return session

    def active_session(self, user_id: UUID) -> FocusSession:
        session = self.sessions.open_for(user_id)
        if session is None:
            raise GatingError(RejectReason.SESSION_NOT_FOUND, "No active session found")
        return session

    def end_session(self, session_id: UUID, user_id: UUID | None = None) -> SessionSummary:
        """
        Close a focus session and settle progression.

        XP is the session award (10 per whole minute, +25 for the first
        session of the day) plus the streak bonus. Unlocks still active in
        the session are revoked with reason ``session_end``.
        """
        with self._transaction("end_session"):
            session = self.sessions.get(session_id)
            if session is None or (user_id is not None and session.user_id != user_id):
                raise GatingError(RejectReason.SESSION_NOT_FOUND, "Session not found")

            user = self.users.lock(session.user_id)
            self.db.refresh(session)
            if session.end_time is not None:
                raise GatingError(
                    RejectReason.SESSION_ALREADY_ENDED,
                    "Session already ended",
                    session_id=str(session.id),
                )

            now = self.clock()
            duration = max(0, math.floor((now - session.start_time).total_seconds() / 60))
            session.end_time = now
            session.duration = duration

            tz = self.config.timezone
            today = local_date(now, tz)
            last_day = local_date(user.last_focus_date, tz)

            session_xp = xp_for_session(duration, is_first_session_today(last_day, today))
            streak = apply_streak(user.streak, user.longest_streak, last_day, today)

            user.xp, user.level = award_xp(user.xp, session_xp + streak.bonus_xp)
            user.streak = streak.streak
            user.longest_streak = streak.longest_streak
            user.last_focus_date = now

            revoked = self.ledger.revoke_for_session(session.id, RevokedBy.SESSION_END)
            self.db.flush()

            summary = SessionSummary(
                session=session,
                session_xp=session_xp,
                streak=streak,
                revoked_unlocks=revoked,
                total_xp=user.xp,
                level=user.level,
            )

        logger.info(
            f"Ended session {session_id}: {duration} min, +{summary.xp_earned} XP, "
            f"streak {streak.streak} ({streak.decision.value})"
        )
        return summary

    # =========================================================================
    # Challenges
    # =========================================================================

    def issue_challenge(
        self,
        user_id: UUID | None,
        domain: str | None,
        challenge_type: str | None = None,
    ) -> IssuedChallenge:
        """
        Issue a challenge gating ``domain``.

        Checks, in order: challenges enabled, type allowed (a random allowed
        type when none is given), cooldown, open session, per-session cap.
        """
        if user_id is None:
            raise GatingError(RejectReason.MISSING_FIELD, "User ID is required", field="userId")
        if not domain or not normalize_domain(domain):
            raise GatingError(RejectReason.MISSING_FIELD, "Domain is required", field="domain")

        with self._transaction("issue_challenge"):
            self.users.lock(user_id)
            settings = self.challenge_settings(user_id)

            if not settings.enabled:
                raise GatingError(RejectReason.CHALLENGES_DISABLED, "Challenges are disabled")

            chosen = self._choose_type(settings, challenge_type)
            now = self.clock()
            self._check_cooldown(user_id, settings, now)

            session = self.sessions.open_for(user_id)
            if session is None:
                raise GatingError(
                    RejectReason.NO_ACTIVE_SESSION,
                    "No active focus session. Start a session to use challenges.",
                )

            usage = self.ledger.session_usage(user_id, session.id)
            cap = settings.max_unlocks_per_session
            if usage.total >= cap:
                raise GatingError(
                    RejectReason.CAP_REACHED,
                    f"Maximum unlocks reached for this session ({cap})",
                    used_unlocks=usage.total,
                    max_unlocks=cap,
                )

            generated = self.catalog.generate(chosen, settings.difficulty)
            challenge = Challenge(
                user_id=user_id,
                session_id=session.id,
                type=generated.type.value,
                difficulty=generated.difficulty,
                content=generated.content.to_storage(),
                unlocked_domain=normalize_domain(domain),
                unlock_duration=settings.unlock_duration,
                created_at=now,
            )
            self.db.add(challenge)
            self.db.flush()

            issued = IssuedChallenge(
                challenge=challenge,
                xp_reward=generated.xp_reward,
                remaining_unlocks=max(0, cap - usage.total - 1),
            )

        logger.info(
            f"Issued {challenge.type} challenge {challenge.id} "
            f"(difficulty {challenge.difficulty}) for {challenge.unlocked_domain}"
        )
        return issued

    def _choose_type(self, settings: EffectiveChallengeSettings, requested: str | None) -> ChallengeType:
        known = {t.value for t in ChallengeType}
        allowed = [t for t in settings.allowed_types if t in known]
        if requested is None or not str(requested).strip():
            if not allowed:
                raise GatingError(RejectReason.TYPE_NOT_ALLOWED, "No challenge types are allowed")
            return ChallengeType(self.rng.choice(allowed))

        name = str(requested).strip().lower()
        if name not in allowed:
            raise GatingError(
                RejectReason.TYPE_NOT_ALLOWED,
                f"Challenge type '{requested}' is not allowed",
                allowed_types=allowed,
            )
        return ChallengeType(name)

    def _check_cooldown(self, user_id: UUID, settings: EffectiveChallengeSettings, now: datetime) -> None:
        """Refuse while the latest challenge is unsuccessful and younger than the cooldown."""
        if settings.cooldown_minutes <= 0:
            return

        latest = self.db.scalars(
            select(Challenge)
            .where(Challenge.user_id == user_id)
            .order_by(Challenge.created_at.desc())
            .limit(1)
        ).first()
        if latest is None or latest.success:
            return

        cooldown = timedelta(minutes=settings.cooldown_minutes)
        elapsed = now - latest.created_at
        if elapsed < cooldown:
            remaining = math.ceil((cooldown - elapsed).total_seconds())
            minutes = math.ceil(remaining / 60)
            raise GatingError(
                RejectReason.COOLDOWN_ACTIVE,
                f"Please wait {minutes} more minute(s) before another challenge",
                remaining_seconds=remaining,
                remaining_time=minutes,
            )

    def verify_challenge(
        self,
        challenge_id: UUID,
        user_answer: str | None,
        time_taken: float | None,
        user_id: UUID | None = None,
    ) -> VerificationResult:
        """
        Decide a challenge attempt.

        Success awards the reward-table XP and grants an unlock for the
        challenge's domain. Failure records the attempt with no reward.
        A challenge is completed exactly once.
        """
        if time_taken is None or time_taken < 0:
            raise GatingError(RejectReason.MISSING_FIELD, "Time taken is required", field="timeTaken")

        with self._transaction("verify_challenge"):
            challenge = self.db.get(Challenge, challenge_id)
            if challenge is None or (user_id is not None and challenge.user_id != user_id):
                raise GatingError(RejectReason.CHALLENGE_NOT_FOUND, "Challenge not found")

            user = self.users.lock(challenge.user_id)
            self.db.refresh(challenge)
            if challenge.is_completed:
                raise GatingError(
                    RejectReason.ALREADY_COMPLETED,
                    "Challenge already completed",
                    challenge_id=str(challenge.id),
                )

            success = self.catalog.verify(challenge.payload, user_answer, time_taken)
            xp = 0
            if success:
                cap = self.challenge_settings(user.id).max_unlocks_per_session
                usage = self.ledger.session_usage(user.id, challenge.session_id)
                if usage.total >= cap:
                    raise GatingError(
                        RejectReason.CAP_REACHED,
                        f"Maximum unlocks reached for this session ({cap})",
                        used_unlocks=usage.total,
                        max_unlocks=cap,
                    )
                xp = self.catalog.xp_reward(challenge.type, challenge.difficulty)

            if not self._complete(challenge, success, xp, user_answer, time_taken):
                raise GatingError(
                    RejectReason.ALREADY_COMPLETED,
                    "Challenge already completed",
                    challenge_id=str(challenge.id),
                )

            unlock = None
            if success:
                user.xp, user.level = award_xp(user.xp, xp)
                unlock = self.ledger.grant(
                    user.id,
                    challenge.unlocked_domain,
                    challenge.session_id,
                    challenge.id,
                    challenge.unlock_duration,
                )
            self.db.flush()
            result = VerificationResult(success=success, challenge=challenge, xp_awarded=xp, unlock=unlock)

        logger.info(
            f"Verified challenge {challenge_id}: {'success' if success else 'failure'}"
            + (f", +{xp} XP" if success else "")
        )
        return result

    def _complete(
        self,
        challenge: Challenge,
        success: bool,
        xp: int,
        user_answer: str | None,
        time_taken: float,
    ) -> bool:
        result = self.db.execute(
            update(Challenge)
            .where(Challenge.id == challenge.id, Challenge.completed_at.is_(None))
            .values(
                completed_at=self.clock(),
                success=success,
                xp_awarded=xp,
                user_answer=user_answer,
                time_taken=time_taken,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(challenge)
        return result.rowcount == 1

    def challenge_history(
        self,
        user_id: UUID,
        limit: int = 50,
        offset: int = 0,
        challenge_type: str | None = None,
        success: bool | None = None,
    ) -> tuple[Sequence[Challenge], int]:
        """Page of the user's challenges (newest first) and the filtered total."""
        filters = [Challenge.user_id == user_id]
        if challenge_type:
            filters.append(Challenge.type == challenge_type)
        if success is not None:
            filters.append(Challenge.success.is_(success))

        total = self.db.scalar(select(func.count()).select_from(Challenge).where(*filters))
        rows = self.db.scalars(
            select(Challenge)
            .where(*filters)
            .order_by(Challenge.created_at.desc())
            .limit(limit)
            .offset(offset)
        ).all()
        return rows, int(total or 0)

    def challenge_stats(self, user_id: UUID) -> ChallengeStats:
        """Totals, success rate, XP earned, last-7-days count and per-type breakdown."""
        succeeded = case((Challenge.success.is_(True), 1), else_=0)
        rows = self.db.execute(
            select(
                Challenge.type,
                func.count(),
                func.coalesce(func.sum(succeeded), 0),
                func.coalesce(func.sum(Challenge.xp_awarded), 0),
                func.avg(Challenge.time_taken),
            )
            .where(Challenge.user_id == user_id)
            .group_by(Challenge.type)
        ).all()

        stats = ChallengeStats()
        for type_name, total, successful, xp, avg_time in rows:
            stats.by_type[type_name] = TypeStats(
                total=int(total),
                successful=int(successful),
                xp_earned=int(xp),
                average_time=round(float(avg_time), 1) if avg_time is not None else None,
            )
            stats.total += int(total)
            stats.successful += int(successful)
            stats.xp_earned += int(xp)

        week_ago = self.clock() - timedelta(days=7)
        stats.last_seven_days = int(
            self.db.scalar(
                select(func.count())
                .select_from(Challenge)
                .where(Challenge.user_id == user_id, Challenge.created_at >= week_ago)
            )
            or 0
        )
        return stats

    # =========================================================================
    # Unlocks
    # =========================================================================

    def check_domain(self, user_id: UUID, domain: str) -> DomainStatus:
        """Sweep, then look up (and mark as used) the active unlock for ``domain``."""
        if not domain or not normalize_domain(domain):
            raise GatingError(RejectReason.MISSING_FIELD, "Domain is required", field="domain")

        with self._transaction("check_domain"):
            self.ledger.sweep_expired()
            unlock = self.ledger.find_active(user_id, domain)
            remaining = 0
            if unlock is not None:
                remaining = max(0, math.floor((unlock.expires_at - self.clock()).total_seconds()))
            status = DomainStatus(domain=normalize_domain(domain), unlock=unlock, remaining_seconds_total=remaining)

        return status

    def list_active_unlocks(self, user_id: UUID) -> Sequence[TemporaryUnlock]:
        with self._transaction("list_active_unlocks"):
            self.ledger.sweep_expired()
            unlocks = self.ledger.list_active(user_id)
        return unlocks

    def session_unlocks(self, user_id: UUID) -> SessionUnlocks:
        """Unlocks of the user's open session with cap usage."""
        with self._transaction("session_unlocks"):
            self.ledger.sweep_expired()
            session = self.active_session(user_id)
            result = SessionUnlocks(
                session=session,
                unlocks=self.ledger.session_unlocks(user_id, session.id),
                max_unlocks=self.challenge_settings(user_id).max_unlocks_per_session,
            )
        return result

    def unlock_history(self, user_id: UUID, limit: int = 50, offset: int = 0) -> tuple[Sequence[TemporaryUnlock], int]:
        return self.ledger.history(user_id, limit=limit, offset=offset)

    def revoke_unlock(self, user_id: UUID, unlock_id: UUID) -> tuple[TemporaryUnlock, bool]:
        """
        Revoke one of the user's unlocks with reason ``user``.

        Returns the unlock and whether this call changed it; revoking an
        inactive unlock is a no-op.
        """
        with self._transaction("revoke_unlock"):
            unlock = self.ledger.get(user_id, unlock_id)
            if unlock is None:
                raise GatingError(RejectReason.UNLOCK_NOT_FOUND, "Unlock not found")
            revoked = self.ledger.revoke(unlock, RevokedBy.USER)
        return unlock, revoked

    def cleanup(self) -> int:
        """Run the expiry sweep; returns the number of unlocks deactivated."""
        with self._transaction("cleanup"):
            count = self.ledger.sweep_expired()
        return count

    # =========================================================================
    # Progression
    # =========================================================================

    def progress(self, user_id: UUID) -> UserProgress:
        user = self.users.get(user_id)
        if user is None:
            raise GatingError(RejectReason.USER_NOT_FOUND, "User not found", user_id=str(user_id))
        return UserProgress(user=user, progress=level_progress(user.xp))
