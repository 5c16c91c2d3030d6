"""
Core Module - Shared domain calculations.

Components:
- progression: XP, level and streak calculators (pure functions)
- clock: naive-UTC timestamps and calendar-day conversion

Design Principle:
Everything in here is store-free so it can be unit-tested in isolation.
The gating engine in src/gating/ is the only writer of their results.
"""

from src.core.progression import (
    LevelProgress,
    StreakDecision,
    StreakUpdate,
    apply_streak,
    award_xp,
    is_first_session_today,
    level_from_xp,
    level_progress,
    streak_decision,
    xp_for_session,
    xp_threshold,
)

__all__ = [
    "LevelProgress",
    "StreakDecision",
    "StreakUpdate",
    "apply_streak",
    "award_xp",
    "is_first_session_today",
    "level_from_xp",
    "level_progress",
    "streak_decision",
    "xp_for_session",
    "xp_threshold",
]
