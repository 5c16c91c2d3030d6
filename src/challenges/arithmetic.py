"""
Arithmetic challenge handler.

Difficulty ladder:
- 1: single addition/subtraction, single-digit operands, never negative
- 2: multiplication or exact division with two-digit operands
- 3: two chained operations
- 4: three operations with a leading group, e.g. (a × b) + c - d
- 5: two groups joined by an operation, e.g. (a × b) - (c + d)

Expressions are evaluated strictly left to right inside each group.
There is no operator precedence: "2 + 3 × 4" is 20.
"""

from __future__ import annotations

import operator
import random
from typing import Callable, Union

from . import ChallengeType, register
from .content import ArithmeticContent, ChallengeContent
from .tables import CatalogTables

# A term is either a number or a parenthesised group of tokens
Term = Union[int, list]

OPERATORS: dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "×": operator.mul,
    "÷": operator.floordiv,
}


def evaluate(tokens: list) -> int:
    """Evaluate ``[term, op, term, op, term, ...]`` left to right."""
    value = _term_value(tokens[0])
    for op, operand in zip(tokens[1::2], tokens[2::2]):
        value = OPERATORS[op](value, _term_value(operand))
    return value


def render(tokens: list) -> str:
    """Render tokens as the question text."""
    return " ".join(_render_term(t) if i % 2 == 0 else t for i, t in enumerate(tokens))


def _term_value(term: Term) -> int:
    return evaluate(term) if isinstance(term, list) else term


def _render_term(term: Term) -> str:
    return f"({render(term)})" if isinstance(term, list) else str(term)


def from_tokens(tokens: list, time_limit: int) -> ArithmeticContent:
    """Build a payload whose answer is the left-to-right value of ``tokens``."""
    return ArithmeticContent(
        question=render(tokens),
        correct_answer=str(evaluate(tokens)),
        time_limit=time_limit,
    )


def from_operands(a: int, op: str, b: int, time_limit: int = 30) -> ArithmeticContent:
    """Single-operation payload; subtraction is always larger minus smaller."""
    if op not in OPERATORS:
        raise ValueError(f"Unsupported operator: {op}")
    if op == "-":
        a, b = max(a, b), min(a, b)
    return from_tokens([a, op, b], time_limit)


@register(ChallengeType.ARITHMETIC)
class ArithmeticHandler:
    """Handler for arithmetic challenges."""

    def generate(self, difficulty: int, rng: random.Random, tables: CatalogTables) -> ChallengeContent:
        time_limit = tables.arithmetic_time_limits[difficulty - 1]
        tokens = self._build_tokens(difficulty, rng)
        return from_tokens(tokens, time_limit)

    def verify(self, content: ChallengeContent, user_answer: str | None, time_taken: float) -> bool:
        """Trimmed exact match against the stored answer."""
        if user_answer is None:
            return False
        return str(user_answer).strip() == content.correct_answer.strip()

    def _build_tokens(self, difficulty: int, rng: random.Random) -> list:
        if difficulty == 1:
            a, b = rng.randint(1, 9), rng.randint(1, 9)
            if rng.choice("+-") == "+":
                return [a, "+", b]
            return [max(a, b), "-", min(a, b)]

        if difficulty == 2:
            if rng.choice("×÷") == "×":
                return [rng.randint(10, 20), "×", rng.randint(10, 20)]
            divisor, quotient = rng.randint(10, 20), rng.randint(10, 20)
            return [divisor * quotient, "÷", divisor]

        if difficulty == 3:
            ops = ("+", "-", "×")
            return [
                rng.randint(5, 19), rng.choice(ops),
                rng.randint(1, 10), rng.choice(ops),
                rng.randint(1, 10),
            ]

        if difficulty == 4:
            group = [rng.randint(3, 14), "×", rng.randint(2, 9)]
            return [
                group, rng.choice("+-"),
                rng.randint(1, 10), rng.choice("+-"),
                rng.randint(1, 5),
            ]

        left = [rng.randint(5, 14), "×", rng.randint(2, 9)]
        right = [rng.randint(2, 7), rng.choice("+×"), rng.randint(1, 10)]
        return [left, rng.choice("+-"), right]
