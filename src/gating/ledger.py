"""
Temporary Unlock Ledger.

Owns every TemporaryUnlock row:
- grant: create an active unlock expiring ``duration`` minutes from now
- find_active: newest currently valid unlock for (user, domain), with usage tracking
- revoke: deactivate one unlock; idempotent
- sweep_expired: deactivate every active row past expiry

Deactivations are conditional UPDATEs on ``is_active = true``, so a row is
revoked at most once even when the sweep and a user revoke race. The ledger
never commits; the caller owns the transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.core.clock import Clock, utcnow
from src.db.models import RevokedBy, TemporaryUnlock


def normalize_domain(domain: str) -> str:
    """Lower-case, trim and drop a leading ``www.``."""
    domain = (domain or "").strip().lower()
    if domain.startswith("www."):
        domain = domain[4:]
    return domain


@dataclass(frozen=True)
class SessionUsage:
    """Unlocks already granted inside one focus session."""

    active: int
    spent: int

    @property
    def total(self) -> int:
        return self.active + self.spent


class UnlockLedger:
    """TemporaryUnlock bookkeeping bound to one database session."""

    def __init__(self, db: Session, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    # =========================================================================
    # Writes
    # =========================================================================

    def grant(
        self,
        user_id: UUID,
        domain: str,
        session_id: UUID,
        challenge_id: UUID,
        duration_minutes: int,
    ) -> TemporaryUnlock:
        """Create an active unlock valid for ``duration_minutes`` from now."""
        if duration_minutes <= 0:
            raise ValueError(f"Unlock duration must be positive, got {duration_minutes}")

        now = self.clock()
        unlock = TemporaryUnlock(
            user_id=user_id,
            domain=normalize_domain(domain),
            session_id=session_id,
            challenge_id=challenge_id,
            granted_at=now,
            expires_at=now + timedelta(minutes=duration_minutes),
            duration=duration_minutes,
            is_active=True,
            was_used=False,
        )
        self.db.add(unlock)
        self.db.flush()

        logger.info(
            f"Granted unlock {unlock.id} for {unlock.domain} "
            f"({duration_minutes} min, expires {unlock.expires_at.isoformat()})"
        )
        return unlock

    def revoke(self, unlock: TemporaryUnlock, reason: str = RevokedBy.USER) -> bool:
        """
        Deactivate ``unlock``.

        Returns:
            True if this call revoked it, False if it was already inactive.
        """
        if reason not in RevokedBy.ALL:
            raise ValueError(f"Unknown revoke reason: {reason}")

        now = self.clock()
        result = self.db.execute(
            update(TemporaryUnlock)
            .where(TemporaryUnlock.id == unlock.id, TemporaryUnlock.is_active.is_(True))
            .values(is_active=False, revoked_at=now, revoked_by=reason)
            .execution_options(synchronize_session=False)
        )
        revoked = result.rowcount == 1
        self.db.refresh(unlock)
        if revoked:
            logger.info(f"Revoked unlock {unlock.id} ({reason})")
        return revoked

    def revoke_for_session(self, session_id: UUID, reason: str = RevokedBy.SESSION_END) -> int:
        """Deactivate every active unlock granted in ``session_id``."""
        now = self.clock()
        result = self.db.execute(
            update(TemporaryUnlock)
            .where(TemporaryUnlock.session_id == session_id, TemporaryUnlock.is_active.is_(True))
            .values(is_active=False, revoked_at=now, revoked_by=reason)
            .execution_options(synchronize_session=False)
        )
        self._expire_loaded()
        if result.rowcount:
            logger.info(f"Revoked {result.rowcount} unlock(s) for session {session_id} ({reason})")
        return result.rowcount

    def _expire_loaded(self) -> None:
        # Bulk updates bypass the identity map; reload unlocks on next access.
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, TemporaryUnlock):
                self.db.expire(obj)

    def sweep_expired(self) -> int:
        """
        Deactivate every active unlock whose expiry has passed.

        Returns:
            Number of rows transitioned; a second sweep at the same instant
            returns 0.
        """
        now = self.clock()
        result = self.db.execute(
            update(TemporaryUnlock)
            .where(TemporaryUnlock.is_active.is_(True), TemporaryUnlock.expires_at <= now)
            .values(is_active=False, revoked_at=now, revoked_by=RevokedBy.EXPIRED)
            .execution_options(synchronize_session=False)
        )
        self._expire_loaded()
        if result.rowcount:
            logger.info(f"Expired {result.rowcount} temporary unlock(s)")
        return result.rowcount

    # =========================================================================
    # Reads
    # =========================================================================

    def find_active(self, user_id: UUID, domain: str, mark_access: bool = True) -> TemporaryUnlock | None:
        """
        Newest currently valid unlock for ``domain``.

        A hit records usage: the first access sets ``was_used`` and
        ``first_accessed_at``; every access moves ``last_accessed_at``.
        """
        now = self.clock()
        stmt = (
            select(TemporaryUnlock)
            .where(
                TemporaryUnlock.user_id == user_id,
                TemporaryUnlock.domain == normalize_domain(domain),
                TemporaryUnlock.is_active.is_(True),
                TemporaryUnlock.expires_at > now,
            )
            .order_by(TemporaryUnlock.granted_at.desc())
            .limit(1)
        )
        unlock = self.db.scalars(stmt).first()

        if unlock is not None and mark_access:
            if not unlock.was_used:
                unlock.was_used = True
                unlock.first_accessed_at = now
            unlock.last_accessed_at = now
            self.db.flush()

        return unlock

    def get(self, user_id: UUID, unlock_id: UUID) -> TemporaryUnlock | None:
        unlock = self.db.get(TemporaryUnlock, unlock_id)
        if unlock is None or unlock.user_id != user_id:
            return None
        return unlock

    def list_active(self, user_id: UUID) -> Sequence[TemporaryUnlock]:
        now = self.clock()
        stmt = (
            select(TemporaryUnlock)
            .where(
                TemporaryUnlock.user_id == user_id,
                TemporaryUnlock.is_active.is_(True),
                TemporaryUnlock.expires_at > now,
            )
            .order_by(TemporaryUnlock.granted_at.desc())
        )
        return self.db.scalars(stmt).all()

    def session_unlocks(self, user_id: UUID, session_id: UUID) -> Sequence[TemporaryUnlock]:
        stmt = (
            select(TemporaryUnlock)
            .where(TemporaryUnlock.user_id == user_id, TemporaryUnlock.session_id == session_id)
            .order_by(TemporaryUnlock.granted_at.desc())
        )
        return self.db.scalars(stmt).all()

    def session_usage(self, user_id: UUID, session_id: UUID) -> SessionUsage:
        """Count active and spent unlocks in a session; both count toward the cap."""
        stmt = (
            select(TemporaryUnlock.is_active, func.count())
            .where(TemporaryUnlock.user_id == user_id, TemporaryUnlock.session_id == session_id)
            .group_by(TemporaryUnlock.is_active)
        )
        counts = {bool(is_active): count for is_active, count in self.db.execute(stmt)}
        return SessionUsage(active=counts.get(True, 0), spent=counts.get(False, 0))

    def history(self, user_id: UUID, limit: int = 50, offset: int = 0) -> tuple[Sequence[TemporaryUnlock], int]:
        """Page of the user's unlocks (newest first) and the total count."""
        total = self.db.scalar(
            select(func.count()).select_from(TemporaryUnlock).where(TemporaryUnlock.user_id == user_id)
        )
        stmt = (
            select(TemporaryUnlock)
            .where(TemporaryUnlock.user_id == user_id)
            .order_by(TemporaryUnlock.granted_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return self.db.scalars(stmt).all(), int(total or 0)
