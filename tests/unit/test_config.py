"""
Unit tests for configuration.

Tests challenge-default validation against the registered challenge types.
"""

import pytest
from pydantic import ValidationError

from config import CHALLENGE_TYPE_NAMES, Settings
from src.challenges import ChallengeType


class TestChallengeDefaults:
    """Test Settings challenge defaults."""

    def test_type_names_follow_registry(self):
        assert set(CHALLENGE_TYPE_NAMES) == {t.value for t in ChallengeType}

    def test_every_type_accepted(self):
        settings = Settings(challenge_allowed_types=",".join(t.value for t in ChallengeType))
        assert settings.get_allowed_types() == [t.value for t in ChallengeType]

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            Settings(challenge_allowed_types="math,juggling")

    def test_defaults_mapping(self):
        defaults = Settings(challenge_allowed_types=" math , typing ").get_challenge_defaults()

        assert defaults["allowed_types"] == ["math", "typing"]
        assert defaults["enabled"] is True
