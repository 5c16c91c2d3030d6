"""
Integration Tests for concurrent verification.

Two database sessions race to verify challenges for the same user against a
file-backed SQLite database. The per-session cap must hold, the loser must
leave no partial state behind, and the winner's XP must not be lost.
"""

import threading

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from src.db.database import build_engine, init_db
from src.db.models import Challenge, ChallengeSettings, TemporaryUnlock, User
from src.gating import GatingEngine, GatingError, RejectReason

pytestmark = pytest.mark.integration


@pytest.fixture
def file_session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'focus_gate.db'}")
    init_db(engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    engine.dispose()


@pytest.fixture
def two_pending_challenges(file_session_factory, gating_config, catalog, clock, answer_for, time_for):
    """One user, one open session, cap 1, two math challenges awaiting verification."""
    with file_session_factory() as db:
        user = User(email="racer@example.com", name="Racer")
        db.add(user)
        db.commit()
        db.add(
            ChallengeSettings(
                user_id=user.id,
                enabled=True,
                allowed_types=["math"],
                difficulty=1,
                unlock_duration=15,
                max_unlocks_per_session=1,
                cooldown_minutes=0,
            )
        )
        db.commit()

        engine = GatingEngine(db, gating_config, catalog=catalog, clock=clock)
        engine.start_session(user.id)
        attempts = []
        for domain in ("youtube.com", "reddit.com"):
            challenge = engine.issue_challenge(user.id, domain, "math").challenge
            attempts.append((challenge.id, answer_for(challenge), time_for(challenge)))
        return user.id, attempts


def verify_in_thread(session_factory, config, catalog, clock, attempt, barrier, outcomes):
    challenge_id, answer, elapsed = attempt
    with session_factory() as db:
        engine = GatingEngine(db, config, catalog=catalog, clock=clock)
        barrier.wait()
        try:
            result = engine.verify_challenge(challenge_id, answer, elapsed)
            outcomes.append(("ok", result.success))
        except GatingError as exc:
            outcomes.append(("refused", exc.reason))


class TestConcurrentVerification:
    """Racing verifications under a cap of one unlock."""

    @pytest.mark.parametrize("attempt_round", range(3))
    def test_cap_holds_under_race(
        self, attempt_round, file_session_factory, gating_config, catalog, clock, two_pending_challenges
    ):
        """Exactly one verification grants; the other is refused without side effects."""
        user_id, attempts = two_pending_challenges
        barrier = threading.Barrier(len(attempts))
        outcomes = []

        threads = [
            threading.Thread(
                target=verify_in_thread,
                args=(file_session_factory, gating_config, catalog, clock, attempt, barrier, outcomes),
            )
            for attempt in attempts
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert len(outcomes) == 2
        assert outcomes.count(("ok", True)) == 1
        refused = [reason for status, reason in outcomes if status == "refused"]
        assert len(refused) == 1
        assert refused[0] in (RejectReason.CONCURRENT_UPDATE, RejectReason.CAP_REACHED)

        with file_session_factory() as db:
            unlocks = db.scalar(select(func.count()).select_from(TemporaryUnlock))
            completed = db.scalar(
                select(func.count()).select_from(Challenge).where(Challenge.completed_at.is_not(None))
            )
            user = db.get(User, user_id)

            assert unlocks == 1
            assert completed == 1
            assert user.xp == 10
