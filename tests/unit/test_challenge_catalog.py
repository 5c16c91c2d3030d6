"""
Unit tests for the challenge catalog.

Tests the handler registry, generation per type and difficulty,
and verification of each payload variant.
"""

import random
from collections import Counter

import pytest
from pydantic import ValidationError

from src.challenges import HANDLERS, ChallengeCatalog, ChallengeType, get_handler
from src.challenges.arithmetic import evaluate, from_operands, render
from src.challenges.catalog import clamp_difficulty
from src.challenges.content import (
    ArithmeticContent,
    ExerciseContent,
    MemoryContent,
    PuzzleContent,
    TypingContent,
    parse_content,
)
from src.challenges.puzzle import scramble, solved_board
from src.challenges.tables import DEFAULT_TABLES, CatalogTables
from src.challenges.typing_passage import typing_accuracy, words_per_minute


@pytest.fixture
def catalog():
    return ChallengeCatalog(rng=random.Random(42))


class TestHandlerRegistry:
    """Test the handler registry."""

    def test_every_type_has_a_handler(self):
        """Each ChallengeType member should have a registered handler."""
        assert set(HANDLERS) == set(ChallengeType)

    def test_every_type_has_rewards(self):
        """Each type has five XP values, one per difficulty."""
        for challenge_type in ChallengeType:
            assert len(DEFAULT_TABLES.xp_rewards[challenge_type.value]) == 5

    def test_get_handler_by_string(self):
        """Should get handler by wire value."""
        assert get_handler("math") is HANDLERS[ChallengeType.ARITHMETIC]

    def test_get_handler_invalid_type(self):
        """Should return None for an unknown type."""
        assert get_handler("juggling") is None


class TestGeneration:
    """Test ChallengeCatalog.generate()."""

    @pytest.mark.parametrize("challenge_type", list(ChallengeType))
    @pytest.mark.parametrize("difficulty", [1, 2, 3, 4, 5])
    def test_generates_matching_variant(self, catalog, challenge_type, difficulty):
        """Payload kind matches the type and the reward comes from the table."""
        generated = catalog.generate(challenge_type, difficulty)

        assert generated.content.kind == challenge_type.value
        assert generated.difficulty == difficulty
        assert generated.xp_reward == DEFAULT_TABLES.reward(challenge_type.value, difficulty)
        assert generated.content.time_limit > 0

    @pytest.mark.parametrize("requested,expected", [(0, 1), (-3, 1), (6, 5), (99, 5), (None, 2), (3, 3)])
    def test_difficulty_clamped(self, requested, expected):
        assert clamp_difficulty(requested) == expected

    def test_generate_clamps_before_building(self, catalog):
        """Out-of-range difficulty generates at the nearest bound."""
        generated = catalog.generate("math", 9)
        assert generated.difficulty == 5
        assert generated.xp_reward == 75

    def test_unknown_type_rejected(self, catalog):
        with pytest.raises(ValueError):
            catalog.generate("juggling", 2)

    def test_reward_tables(self, catalog):
        """Spot-check the reward tables."""
        assert catalog.xp_reward("math", 1) == 10
        assert catalog.xp_reward("exercise", 5) == 150
        assert catalog.xp_reward("reaction", 2) == 18
        assert catalog.xp_reward("puzzle", 3) == 55

    def test_custom_tables(self):
        """A catalog built with its own tables uses them."""
        tables = CatalogTables(arithmetic_time_limits=(5, 5, 5, 5, 5))
        generated = ChallengeCatalog(tables=tables, rng=random.Random(1)).generate("math", 3)
        assert generated.content.time_limit == 5


class TestArithmetic:
    """Test arithmetic generation and verification."""

    def test_single_digit_subtraction(self, catalog):
        """(7, 3) with '-' renders '7 - 3' and answers '4'."""
        content = from_operands(7, "-", 3)

        assert content.question == "7 - 3"
        assert content.correct_answer == "4"
        assert catalog.verify(content, "4", 3.0) is True
        assert catalog.verify(content, " 4 ", 3.0) is True
        assert catalog.verify(content, "5", 3.0) is False

    def test_subtraction_is_never_negative(self):
        """Operands are swapped so the larger comes first."""
        content = from_operands(3, "-", 7)
        assert content.question == "7 - 3"

    def test_missing_answer_fails(self, catalog):
        assert catalog.verify(from_operands(2, "+", 2), None, 3.0) is False

    def test_left_to_right_evaluation(self):
        """No operator precedence: 2 + 3 × 4 is 20."""
        assert evaluate([2, "+", 3, "×", 4]) == 20

    def test_groups_evaluate_first(self):
        """Parenthesised groups are evaluated as a unit."""
        tokens = [[4, "×", 5], "-", [2, "+", 3]]
        assert render(tokens) == "(4 × 5) - (2 + 3)"
        assert evaluate(tokens) == 15

    def test_difficulty_one_shape(self):
        """Difficulty 1 uses one operator and single-digit operands."""
        catalog = ChallengeCatalog(rng=random.Random(0))
        for _ in range(50):
            content = catalog.generate("math", 1).content
            a, op, b = content.question.split(" ")
            assert op in "+-"
            assert 1 <= int(a) <= 9 and 1 <= int(b) <= 9
            assert int(content.correct_answer) >= 0

    def test_division_is_exact(self):
        """Difficulty 2 division always has an integer quotient."""
        catalog = ChallengeCatalog(rng=random.Random(5))
        for _ in range(50):
            content = catalog.generate("math", 2).content
            a, op, b = content.question.split(" ")
            if op == "÷":
                assert int(a) % int(b) == 0
                assert int(a) // int(b) == int(content.correct_answer)

    def test_public_view_hides_answer(self, catalog):
        """The answer key never appears in the client payload."""
        content = catalog.generate("math", 3).content
        public = content.public_view()

        assert "correctAnswer" not in public
        assert "correct_answer" not in public
        assert public["question"] == content.question
        assert public["timeLimit"] == content.time_limit


class TestMemory:
    """Test memory-match generation."""

    @pytest.mark.parametrize("difficulty,rows,cols", [(1, 2, 3), (2, 3, 4), (3, 4, 4), (4, 4, 5), (5, 5, 6)])
    def test_grid_sizes(self, catalog, difficulty, rows, cols):
        content = catalog.generate("memory", difficulty).content

        assert isinstance(content, MemoryContent)
        assert (content.rows, content.cols) == (rows, cols)
        assert len(content.cards) == rows * cols

    def test_every_symbol_paired(self, catalog):
        """Each symbol appears exactly twice."""
        content = catalog.generate("memory", 4).content
        assert set(Counter(content.cards).values()) == {2}

    def test_time_limit_scales(self, catalog):
        """60 seconds plus 30 per difficulty level."""
        assert catalog.generate("memory", 1).content.time_limit == 90
        assert catalog.generate("memory", 5).content.time_limit == 210


class TestTyping:
    """Test typed-passage verification."""

    @pytest.fixture
    def content(self):
        return TypingContent(
            text="Focus on being productive instead of busy.",
            min_wpm=30,
            min_accuracy=90,
            time_limit=120,
        )

    def test_words_per_minute(self):
        assert words_per_minute(30, 60) == 30
        assert words_per_minute(10, 0) == 0.0

    def test_exact_text_fast_enough_passes(self, catalog, content):
        """7 words in 10 seconds is 42 WPM."""
        assert catalog.verify(content, content.text, 10.0) is True

    def test_too_slow_fails(self, catalog, content):
        """7 words in 30 seconds is 14 WPM."""
        assert catalog.verify(content, content.text, 30.0) is False

    def test_inaccurate_text_fails(self, catalog, content):
        """Fast but wrong text does not pass the accuracy bar."""
        assert catalog.verify(content, "Focus on being busy.", 5.0) is False

    def test_small_typo_within_accuracy(self, catalog, content):
        """One wrong character in a 42-character passage is above 90%."""
        assert typing_accuracy(content.text, "Focus on being productive instead of busy!") > 95
        assert catalog.verify(content, "Focus on being productive instead of busy!", 10.0) is True

    def test_missing_text_fails(self, catalog, content):
        assert catalog.verify(content, None, 10.0) is False

    def test_requirements_by_difficulty(self, catalog):
        content = catalog.generate("typing", 5).content
        assert (content.min_wpm, content.min_accuracy) == (60, 97)
        assert content.text in DEFAULT_TABLES.passages[4]


class TestTimedChallenges:
    """Test exercise, breathing, puzzle and reaction verification."""

    @pytest.mark.parametrize("challenge_type", ["exercise", "breathing", "puzzle", "reaction", "memory"])
    def test_within_limit_passes(self, catalog, challenge_type):
        content = catalog.generate(challenge_type, 2).content
        assert catalog.verify(content, None, content.time_limit - 1) is True

    @pytest.mark.parametrize("challenge_type", ["exercise", "breathing", "puzzle", "reaction", "memory"])
    def test_at_or_past_limit_fails(self, catalog, challenge_type):
        content = catalog.generate(challenge_type, 2).content
        assert catalog.verify(content, None, content.time_limit) is False
        assert catalog.verify(content, None, content.time_limit + 30) is False

    def test_exercise_from_tier(self, catalog):
        content = catalog.generate("exercise", 5).content
        assert isinstance(content, ExerciseContent)
        assert content.exercise in {"Burpees", "Push-ups"}

    def test_breathing_time_limit(self, catalog):
        """(4 + 7 + 8) × 4 guided seconds plus a minute of slack."""
        content = catalog.generate("breathing", 3).content
        assert content.cadence == (4, 7, 8)
        assert content.time_limit == 19 * 4 + 60

    def test_reaction_tightens(self, catalog):
        easy = catalog.generate("reaction", 1).content
        hard = catalog.generate("reaction", 5).content
        assert hard.max_average_ms < easy.max_average_ms
        assert hard.rounds > easy.rounds


class TestPuzzle:
    """Test sliding-tile scrambling."""

    def test_solved_board(self):
        assert solved_board(3) == [1, 2, 3, 4, 5, 6, 7, 8, 0]

    def test_scramble_is_permutation(self):
        tiles = scramble(4, 30, random.Random(3))
        assert sorted(tiles) == list(range(16))

    def test_generated_board(self, catalog):
        content = catalog.generate("puzzle", 3).content
        assert isinstance(content, PuzzleContent)
        assert content.size == 4
        assert len(content.tiles) == 16


class TestContentParsing:
    """Test the discriminated union."""

    def test_storage_round_trip_keeps_variant(self, catalog):
        """Stored payloads parse back to the same variant."""
        content = catalog.generate("math", 2).content
        parsed = parse_content(content.to_storage())

        assert isinstance(parsed, ArithmeticContent)
        assert parsed == content

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            parse_content({"kind": "juggling", "time_limit": 30})

    def test_non_positive_time_limit_rejected(self):
        with pytest.raises(ValidationError):
            ArithmeticContent(question="1 + 1", correct_answer="2", time_limit=0)
