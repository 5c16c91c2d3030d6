"""
Typed-passage challenge handler.

The user retypes a fixed passage. Success needs both:
- words per minute, recomputed from the passage word count and elapsed time
- character-level accuracy of the submitted text against the passage
"""

from __future__ import annotations

import random
from difflib import SequenceMatcher

from . import ChallengeType, register
from .content import ChallengeContent, TypingContent
from .tables import CatalogTables


def words_per_minute(word_count: int, time_taken: float) -> float:
    """WPM for ``word_count`` words typed in ``time_taken`` seconds."""
    if time_taken <= 0:
        return 0.0
    return word_count / (time_taken / 60)


def typing_accuracy(expected: str, typed: str) -> float:
    """Percentage similarity (0-100) between the passage and what was typed."""
    if not expected:
        return 0.0
    return SequenceMatcher(None, expected, typed, autojunk=False).ratio() * 100


@register(ChallengeType.TYPED_PASSAGE)
class TypingHandler:
    """Handler for typed-passage challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        text = rng.choice(tables.passages[difficulty - 1])
        min_wpm, min_accuracy = tables.typing_requirements[difficulty - 1]
        return TypingContent(
            text=text,
            min_wpm=min_wpm,
            min_accuracy=min_accuracy,
            time_limit=tables.typing_time_limit,
        )

    def verify(self, content: ChallengeContent, user_answer: str | None, time_taken: float) -> bool:
        if user_answer is None or time_taken is None or time_taken <= 0:
            return False

        wpm = words_per_minute(content.word_count, time_taken)
        accuracy = typing_accuracy(content.text, str(user_answer).strip())
        return wpm >= content.min_wpm and accuracy >= content.min_accuracy
