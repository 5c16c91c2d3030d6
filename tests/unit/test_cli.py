"""
Unit tests for the focusgate CLI.

Commands run in-process through Typer's CliRunner; database commands use the
in-memory test database.
"""

from datetime import datetime

import pytest
from typer.testing import CliRunner

from src.challenges.arithmetic import from_operands
from src.cli.main import app
from src.db.models import Challenge, FocusSession, TemporaryUnlock

runner = CliRunner()


@pytest.fixture
def cli_db(monkeypatch, db_session_factory):
    """Point the CLI's session scope at the test database."""
    monkeypatch.setattr("src.db.database.SessionLocal", db_session_factory)
    return db_session_factory


class TestUnlockCommands:
    """Test `focusgate unlocks`."""

    def test_sweep_expires_stale_unlocks(self, cli_db, db, user):
        session = FocusSession(user_id=user.id, start_time=datetime(2024, 3, 11, 9, 0))
        db.add(session)
        db.flush()
        challenge = Challenge(
            user_id=user.id,
            session_id=session.id,
            type="math",
            difficulty=1,
            content=from_operands(7, "-", 3).to_storage(),
            unlocked_domain="youtube.com",
            unlock_duration=15,
        )
        db.add(challenge)
        db.flush()
        unlock = TemporaryUnlock(
            user_id=user.id,
            session_id=session.id,
            challenge_id=challenge.id,
            domain="youtube.com",
            granted_at=datetime(2024, 3, 11, 9, 0),
            expires_at=datetime(2024, 3, 11, 9, 15),
            duration=15,
        )
        db.add(unlock)
        db.commit()

        result = runner.invoke(app, ["unlocks", "sweep"])

        assert result.exit_code == 0
        assert "Expired 1 unlock(s)" in result.stdout
        db.refresh(unlock)
        assert unlock.revoked_by == "expired"

    def test_active_without_unlocks(self, cli_db, user):
        result = runner.invoke(app, ["unlocks", "active", str(user.id)])

        assert result.exit_code == 0
        assert "No active unlocks" in result.stdout


class TestProgressCommands:
    """Test `focusgate progress`."""

    def test_level(self):
        result = runner.invoke(app, ["progress", "level", "100"])

        assert result.exit_code == 0
        assert "Level 2" in result.stdout

    def test_user(self, cli_db, make_user):
        user = make_user(xp=241, level=2, streak=3, longest_streak=4)

        result = runner.invoke(app, ["progress", "user", str(user.id)])

        assert result.exit_code == 0
        assert "241" in result.stdout

    def test_unknown_user(self, cli_db):
        result = runner.invoke(app, ["progress", "user", "00000000-0000-0000-0000-000000000000"])

        assert result.exit_code == 1


class TestChallengeCommands:
    """Test `focusgate challenge sample`."""

    def test_sample_hides_answer(self):
        result = runner.invoke(app, ["challenge", "sample", "math", "--difficulty", "1"])

        assert result.exit_code == 0
        assert "correctAnswer" not in result.stdout

    def test_unknown_type(self):
        result = runner.invoke(app, ["challenge", "sample", "juggling"])

        assert result.exit_code == 1
