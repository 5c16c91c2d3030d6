"""
Core Progression Module.

Pure calculators for experience points, levels and daily streaks.
Nothing in here touches a store; the gating engine feeds values in and
writes the results back to the user record.

Design:
- xp_for_session: XP earned by closing a focus session
- xp_threshold / level_from_xp: cumulative level curve (100 * i^1.5 per level)
- streak_decision / apply_streak: consecutive-day streak bookkeeping
- LevelProgress: progress toward the next level for display
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

# XP per minute of focus
SESSION_XP_PER_MINUTE = 10
# Bonus for the first session of a calendar day
FIRST_SESSION_BONUS = 25
# Bonus per streak day gained
STREAK_BONUS_PER_DAY = 5
# Base of the per-level XP curve
LEVEL_BASE_XP = 100
LEVEL_EXPONENT = 1.5


def xp_for_session(duration_minutes: float, is_first_session_today: bool = False) -> int:
    """
    XP awarded for a closed focus session.

    Args:
        duration_minutes: Session length in minutes
        is_first_session_today: Whether this is the user's first session of the day

    Returns:
        floor(duration * 10), plus 25 for the first session of the day.
        Negative durations count as zero minutes.
    """
    duration_minutes = max(duration_minutes, 0)
    xp = duration_minutes * SESSION_XP_PER_MINUTE
    if is_first_session_today:
        xp += FIRST_SESSION_BONUS
    return math.floor(xp)


def _xp_for_level_step(level: int) -> int:
    return math.floor(LEVEL_BASE_XP * level**LEVEL_EXPONENT)


def xp_threshold(level: int) -> int:
    """Cumulative XP required to reach ``level`` (sum of each step up to it)."""
    return sum(_xp_for_level_step(i) for i in range(1, level + 1))


def level_from_xp(total_xp: int) -> int:
    """
    Largest level >= 1 whose previous threshold has been met.

    The curve has no closed-form inverse once floor() is applied, so walk it.
    """
    level = 1
    cumulative = 0
    while True:
        cumulative += _xp_for_level_step(level)
        if cumulative > total_xp:
            return level
        level += 1


def award_xp(current_xp: int, amount: int) -> tuple[int, int]:
    """Add ``amount`` XP (never negative) and return the new (xp, level)."""
    new_xp = max(0, current_xp or 0) + max(0, amount)
    return new_xp, level_from_xp(new_xp)


@dataclass(frozen=True)
class LevelProgress:
    """Progress toward the next level."""

    level: int
    total_xp: int
    xp_for_current_level: int
    xp_for_next_level: int

    @property
    def xp_progress(self) -> int:
        return self.total_xp - self.xp_for_current_level

    @property
    def xp_required(self) -> int:
        return self.xp_for_next_level - self.xp_for_current_level

    @property
    def xp_needed(self) -> int:
        return self.xp_for_next_level - self.total_xp

    @property
    def progress_percentage(self) -> float:
        pct = (self.xp_progress / self.xp_required) * 100 if self.xp_required else 100.0
        return min(100.0, max(0.0, pct))

    def to_dict(self) -> dict[str, float | int]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "total_xp": self.total_xp,
            "xp_for_current_level": self.xp_for_current_level,
            "xp_for_next_level": self.xp_for_next_level,
            "xp_progress": self.xp_progress,
            "xp_required": self.xp_required,
            "xp_needed": self.xp_needed,
            "progress_percentage": round(self.progress_percentage, 2),
        }


def level_progress(total_xp: int) -> LevelProgress:
    """Describe where ``total_xp`` sits between its level and the next."""
    level = level_from_xp(total_xp)
    return LevelProgress(
        level=level,
        total_xp=total_xp,
        xp_for_current_level=xp_threshold(level - 1),
        xp_for_next_level=xp_threshold(level),
    )


# ========================================
# Streaks
# ========================================


class StreakDecision(str, Enum):
    """What a session close does to the running streak."""

    INCREMENT = "increment"
    RESET = "reset"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class StreakUpdate:
    """Result of applying a session close to a streak."""

    decision: StreakDecision
    streak: int
    longest_streak: int
    bonus_xp: int


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def streak_decision(last_focus_date: date | datetime | None, now: date | datetime) -> StreakDecision:
    """
    Decide how the streak moves for a session closed at ``now``.

    Both arguments must already be expressed in the user's calendar timezone.
    A user with no previous focus date starts a streak (increment to 1).
    """
    if last_focus_date is None:
        return StreakDecision.INCREMENT

    last_day = _as_date(last_focus_date)
    today = _as_date(now)
    if last_day == today:
        return StreakDecision.UNCHANGED
    if last_day == today - timedelta(days=1):
        return StreakDecision.INCREMENT
    return StreakDecision.RESET


def apply_streak(
    streak: int,
    longest_streak: int,
    last_focus_date: date | datetime | None,
    now: date | datetime,
) -> StreakUpdate:
    """Apply a session close to (streak, longest_streak) and compute the bonus."""
    old = streak or 0
    decision = streak_decision(last_focus_date, now)

    if decision is StreakDecision.UNCHANGED:
        new = old
    elif decision is StreakDecision.INCREMENT:
        new = 1 if last_focus_date is None else old + 1
    else:
        new = 1

    bonus = STREAK_BONUS_PER_DAY * (new - old) if decision is StreakDecision.INCREMENT else 0
    return StreakUpdate(
        decision=decision,
        streak=new,
        longest_streak=max(longest_streak or 0, new),
        bonus_xp=max(0, bonus),
    )


def is_first_session_today(last_focus_date: date | datetime | None, now: date | datetime) -> bool:
    """True when no session has been closed yet on ``now``'s calendar day."""
    return last_focus_date is None or _as_date(last_focus_date) != _as_date(now)
