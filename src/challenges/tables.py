"""
Catalog tables.

Every constant the generators read lives on one frozen ``CatalogTables``
instance. The application builds it once at startup and hands it to the
``ChallengeCatalog``; tests can build their own.

Tuples are indexed by ``difficulty - 1``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5


@dataclass(frozen=True)
class ExerciseSpec:
    name: str
    reps: int
    description: str


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(dict(mapping))


DEFAULT_XP_REWARDS = _frozen({
    "math": (10, 20, 35, 50, 75),
    "memory": (15, 25, 40, 60, 85),
    "typing": (15, 25, 40, 55, 80),
    "exercise": (30, 50, 75, 100, 150),
    "breathing": (20, 30, 45, 65, 90),
    "puzzle": (20, 35, 55, 80, 110),
    "reaction": (10, 18, 30, 45, 65),
})

DEFAULT_PASSAGES: tuple[tuple[str, ...], ...] = (
    (
        "Stay focused.",
        "You can do this.",
        "Keep going strong.",
        "Believe in yourself.",
    ),
    (
        "Success is the sum of small efforts repeated day in and day out.",
        "The secret of getting ahead is getting started.",
        "Focus on being productive instead of busy.",
    ),
    (
        "The only way to do great work is to love what you do and stay focused on your goals.",
        "Discipline is choosing between what you want now and what you want most in the long run.",
        "Your focus determines your reality, so choose wisely where you direct your attention.",
    ),
    (
        "The successful warrior is the average person with laser-like focus and unwavering determination.",
        "Concentration and mental toughness are the margins of victory in any competition or endeavor.",
        "It's not always that we need to do more but rather that we need to focus on less and execute better.",
    ),
    (
        "The ability to discipline yourself to delay gratification in the short term in order to enjoy "
        "greater rewards in the long term is the indispensable prerequisite for success in any field of "
        "human endeavor.",
        "Focus is a matter of deciding what things you're not going to do, because if you try to do "
        "everything, you'll accomplish nothing significant in the end.",
    ),
)

DEFAULT_EXERCISES: tuple[tuple[ExerciseSpec, ...], ...] = (
    (
        ExerciseSpec("Jumping Jacks", 10, "Do 10 jumping jacks"),
        ExerciseSpec("Arm Circles", 15, "Do 15 arm circles"),
    ),
    (
        ExerciseSpec("Jumping Jacks", 20, "Do 20 jumping jacks"),
        ExerciseSpec("High Knees", 15, "Do 15 high knees (each leg)"),
    ),
    (
        ExerciseSpec("Squats", 15, "Do 15 squats"),
        ExerciseSpec("Jumping Jacks", 30, "Do 30 jumping jacks"),
    ),
    (
        ExerciseSpec("Push-ups", 10, "Do 10 push-ups"),
        ExerciseSpec("Squats", 20, "Do 20 squats"),
    ),
    (
        ExerciseSpec("Burpees", 10, "Do 10 burpees"),
        ExerciseSpec("Push-ups", 15, "Do 15 push-ups"),
    ),
)


@dataclass(frozen=True)
class CatalogTables:
    """Immutable generator configuration, one instance per process."""

    xp_rewards: Mapping[str, tuple[int, ...]] = field(default_factory=lambda: DEFAULT_XP_REWARDS)

    # Arithmetic: seconds allowed per difficulty
    arithmetic_time_limits: tuple[int, ...] = (30, 45, 60, 90, 120)

    # Memory: (rows, cols) per difficulty, symbols drawn in order
    memory_grids: tuple[tuple[int, int], ...] = ((2, 3), (3, 4), (4, 4), (4, 5), (5, 6))
    memory_symbols: tuple[str, ...] = (
        "🎮", "🎯", "🎨", "🎭", "🎪", "🎬", "🎵", "🎸", "🎺", "🎻",
        "🎲", "🎰", "🏀", "⚽", "🏈", "⚾", "🎾", "🏐", "🏓", "🏸",
    )
    memory_base_seconds: int = 60
    memory_seconds_per_level: int = 30

    # Typing: passages per tier, (min_wpm, min_accuracy) per difficulty
    passages: tuple[tuple[str, ...], ...] = DEFAULT_PASSAGES
    typing_requirements: tuple[tuple[int, int], ...] = ((20, 85), (30, 90), (40, 92), (50, 95), (60, 97))
    typing_time_limit: int = 120

    # Exercise: choices per tier and seconds allowed per difficulty
    exercises: tuple[tuple[ExerciseSpec, ...], ...] = DEFAULT_EXERCISES
    exercise_time_limits: tuple[int, ...] = (90, 120, 150, 180, 240)

    # Breathing: (inhale, hold, exhale, cycles) per difficulty
    breathing_patterns: tuple[tuple[int, int, int, int], ...] = (
        (4, 2, 4, 3),
        (4, 4, 4, 4),
        (4, 7, 8, 4),
        (5, 5, 5, 5),
        (6, 6, 6, 6),
    )
    breathing_slack_seconds: int = 60

    # Puzzle: (board size, scramble moves) per difficulty
    puzzle_boards: tuple[tuple[int, int], ...] = ((3, 10), (3, 20), (4, 30), (4, 45), (5, 60))
    puzzle_time_limits: tuple[int, ...] = (120, 180, 240, 300, 360)

    # Reaction: (max average ms, rounds) per difficulty
    reaction_requirements: tuple[tuple[int, int], ...] = ((800, 3), (600, 5), (450, 5), (350, 7), (250, 10))
    reaction_seconds_per_round: int = 10
    reaction_base_seconds: int = 30

    def reward(self, challenge_type: str, difficulty: int) -> int:
        """XP for completing ``challenge_type`` at ``difficulty``."""
        return self.xp_rewards[challenge_type][difficulty - 1]


DEFAULT_TABLES = CatalogTables()
