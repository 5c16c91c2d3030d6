"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
Store-backed fixtures use in-memory SQLite and a frozen, advanceable clock.
"""
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sqlalchemy.orm import sessionmaker

from src.challenges import ChallengeCatalog
from src.db.database import build_engine, init_db
from src.db.models import ChallengeSettings, User
from src.gating import EffectiveChallengeSettings, GatingConfig, GatingEngine


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API over SQLite)")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = datetime(2024, 3, 11, 9, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    """Frozen clock starting Monday 2024-03-11 09:00 UTC."""
    return FrozenClock()


@pytest.fixture
def db_engine():
    """Fresh in-memory database with every table created."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(db_session_factory):
    """Database session for a single test."""
    session = db_session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """Factory for persisted users."""
    counter = {"n": 0}

    def _make_user(**kwargs) -> User:
        counter["n"] += 1
        kwargs.setdefault("email", f"user{counter['n']}@example.com")
        kwargs.setdefault("name", f"User {counter['n']}")
        user = User(**kwargs)
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def make_settings(db):
    """Factory for a user's challenge_settings row."""

    def _make_settings(user: User, **kwargs) -> ChallengeSettings:
        values = {
            "enabled": True,
            "allowed_types": ["math", "memory", "typing"],
            "difficulty": 1,
            "unlock_duration": 15,
            "max_unlocks_per_session": 3,
            "cooldown_minutes": 5,
        }
        values.update(kwargs)
        row = ChallengeSettings(user_id=user.id, **values)
        db.add(row)
        db.commit()
        return row

    return _make_settings


@pytest.fixture
def challenge_defaults():
    return EffectiveChallengeSettings(
        enabled=True,
        allowed_types=("math", "memory", "typing"),
        difficulty=1,
        unlock_duration=15,
        max_unlocks_per_session=3,
        cooldown_minutes=5,
    )


@pytest.fixture
def gating_config(challenge_defaults):
    return GatingConfig(defaults=challenge_defaults, timezone="UTC")


@pytest.fixture
def catalog():
    """Catalog with a seeded random source."""
    return ChallengeCatalog(rng=random.Random(1234))


@pytest.fixture
def gating_engine(db, gating_config, catalog, clock):
    return GatingEngine(db, gating_config, catalog=catalog, clock=clock)


def correct_answer(challenge) -> str | None:
    """Answer that passes verification for a stored challenge."""
    content = challenge.content
    if content["kind"] == "math":
        return content["correct_answer"]
    if content["kind"] == "typing":
        return content["text"]
    return None


def passing_time(challenge) -> float:
    """Elapsed seconds that satisfy every type's timing rule."""
    content = challenge.content
    if content["kind"] == "typing":
        # Two-word passages still clear 60 WPM at one second
        return 1.0
    return 5.0


@pytest.fixture
def answer_for():
    return correct_answer


@pytest.fixture
def time_for():
    return passing_time
