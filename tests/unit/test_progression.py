"""
Unit tests for the progression calculators.

Tests session XP, the level curve, streak decisions and level progress.
"""

from datetime import date, datetime

import pytest

from src.core.clock import local_date
from src.core.progression import (
    StreakDecision,
    apply_streak,
    award_xp,
    is_first_session_today,
    level_from_xp,
    level_progress,
    streak_decision,
    xp_for_session,
    xp_threshold,
)


class TestSessionXP:
    """Test xp_for_session()."""

    @pytest.mark.parametrize("minutes", [1, 25, 90])
    def test_ten_xp_per_minute(self, minutes):
        """Plain sessions earn 10 XP per minute."""
        assert xp_for_session(minutes, False) == 10 * minutes

    @pytest.mark.parametrize("minutes", [1, 25, 90])
    def test_first_session_bonus(self, minutes):
        """The first session of the day adds 25 XP."""
        assert xp_for_session(minutes, True) == 10 * minutes + 25

    def test_zero_duration_keeps_first_session_bonus(self):
        """A zero-minute first session still earns the 25 XP bonus."""
        assert xp_for_session(0, False) == 0
        assert xp_for_session(0, True) == 25

    def test_negative_duration_counts_as_zero(self):
        assert xp_for_session(-5, False) == 0
        assert xp_for_session(-5, True) == 25

    def test_fractional_minutes_floor(self):
        """Partial minutes are floored."""
        assert xp_for_session(2.9) == 29


class TestLevelCurve:
    """Test xp_threshold() and level_from_xp()."""

    def test_known_points(self):
        """Level 1 until 100 XP, level 2 at exactly 100."""
        assert level_from_xp(0) == 1
        assert level_from_xp(99) == 1
        assert level_from_xp(100) == 2

    def test_thresholds_are_cumulative(self):
        """Each threshold adds floor(100 * level^1.5)."""
        assert xp_threshold(0) == 0
        assert xp_threshold(1) == 100
        assert xp_threshold(2) == 100 + 282
        assert xp_threshold(3) == 100 + 282 + 519

    def test_level_changes_at_threshold(self):
        """Level 3 starts exactly at xp_threshold(2)."""
        assert level_from_xp(xp_threshold(2) - 1) == 2
        assert level_from_xp(xp_threshold(2)) == 3

    def test_non_decreasing(self):
        """More XP never means a lower level."""
        levels = [level_from_xp(xp) for xp in range(0, 5000, 37)]
        assert levels == sorted(levels)

    def test_award_xp_recomputes_level(self):
        """award_xp returns the new total and its level."""
        assert award_xp(90, 20) == (110, 2)
        assert award_xp(0, 0) == (0, 1)


class TestLevelProgress:
    """Test level_progress()."""

    def test_midway(self):
        """Progress is measured within the current level band."""
        progress = level_progress(241)

        assert progress.level == 2
        assert progress.xp_for_current_level == 100
        assert progress.xp_for_next_level == 382
        assert progress.xp_progress == 141
        assert progress.xp_needed == 141
        assert progress.progress_percentage == pytest.approx(50.0)

    def test_to_dict_keys(self):
        """Dictionary form carries derived fields."""
        data = level_progress(0).to_dict()

        assert data["level"] == 1
        assert data["xp_needed"] == 100
        assert data["progress_percentage"] == 0.0


class TestStreaks:
    """Test streak_decision() and apply_streak()."""

    def test_yesterday_increments_with_bonus(self):
        """A session the day after extends the streak and pays 5 XP."""
        update = apply_streak(4, 6, date(2024, 3, 10), date(2024, 3, 11))

        assert update.decision is StreakDecision.INCREMENT
        assert update.streak == 5
        assert update.longest_streak == 6
        assert update.bonus_xp == 5

    def test_same_day_unchanged(self):
        """A second session on the same day changes nothing."""
        update = apply_streak(4, 6, date(2024, 3, 11), date(2024, 3, 11))

        assert update.decision is StreakDecision.UNCHANGED
        assert update.streak == 4
        assert update.bonus_xp == 0

    def test_gap_resets_to_one(self):
        """Three days without a session resets the streak to 1 with no bonus."""
        update = apply_streak(4, 6, date(2024, 3, 8), date(2024, 3, 11))

        assert update.decision is StreakDecision.RESET
        assert update.streak == 1
        assert update.longest_streak == 6
        assert update.bonus_xp == 0

    def test_first_ever_session_starts_streak(self):
        """No previous focus date starts a streak of 1."""
        update = apply_streak(0, 0, None, date(2024, 3, 11))

        assert update.decision is StreakDecision.INCREMENT
        assert update.streak == 1
        assert update.longest_streak == 1
        assert update.bonus_xp == 5

    def test_longest_streak_tracks_new_high(self):
        """Longest streak follows the running streak upward."""
        update = apply_streak(6, 6, date(2024, 3, 10), date(2024, 3, 11))
        assert update.longest_streak == 7

    def test_datetimes_compare_by_calendar_day(self):
        """Late yesterday to early today is still consecutive."""
        decision = streak_decision(datetime(2024, 3, 10, 23, 59), datetime(2024, 3, 11, 0, 1))
        assert decision is StreakDecision.INCREMENT

    def test_is_first_session_today(self):
        assert is_first_session_today(None, date(2024, 3, 11)) is True
        assert is_first_session_today(date(2024, 3, 10), date(2024, 3, 11)) is True
        assert is_first_session_today(date(2024, 3, 11), date(2024, 3, 11)) is False


class TestLocalDate:
    """Test calendar-day conversion."""

    def test_timezone_shifts_day(self):
        """01:00 UTC is still the previous day in New York."""
        moment = datetime(2024, 3, 11, 1, 0)

        assert local_date(moment, "UTC") == date(2024, 3, 11)
        assert local_date(moment, "America/New_York") == date(2024, 3, 10)

    def test_none_passthrough(self):
        assert local_date(None) is None
