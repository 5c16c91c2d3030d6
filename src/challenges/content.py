"""
Challenge payloads.

One model per challenge type, joined into a discriminated union on ``kind``
so a stored JSON payload always parses back to exactly one variant.

Answer keys are listed in ``secret_fields`` and never leave the server.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class ContentModel(BaseModel):
    """Common configuration for every payload variant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    secret_fields: ClassVar[frozenset[str]] = frozenset()

    time_limit: int = Field(..., gt=0, description="Seconds allowed for the attempt")

    def public_view(self) -> dict[str, Any]:
        """Payload as sent to the client, answer key removed."""
        return self.model_dump(mode="json", by_alias=True, exclude=set(self.secret_fields))

    def to_storage(self) -> dict[str, Any]:
        """Full payload for the challenges.content column."""
        return self.model_dump(mode="json")


class ArithmeticContent(ContentModel):
    kind: Literal["math"] = "math"
    secret_fields: ClassVar[frozenset[str]] = frozenset({"correct_answer"})

    question: str
    correct_answer: str


class MemoryContent(ContentModel):
    kind: Literal["memory"] = "memory"

    rows: int
    cols: int
    cards: list[str]

    @property
    def pairs(self) -> int:
        return len(self.cards) // 2


class TypingContent(ContentModel):
    kind: Literal["typing"] = "typing"

    text: str
    min_wpm: int
    min_accuracy: int

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class ExerciseContent(ContentModel):
    kind: Literal["exercise"] = "exercise"

    exercise: str
    reps: int
    description: str


class BreathingContent(ContentModel):
    kind: Literal["breathing"] = "breathing"

    # (inhale, hold, exhale) seconds
    cadence: tuple[int, int, int]
    cycles: int
    instructions: str


class PuzzleContent(ContentModel):
    kind: Literal["puzzle"] = "puzzle"

    size: int
    tiles: list[int]  # row-major, 0 is the blank
    scramble_moves: int


class ReactionContent(ContentModel):
    kind: Literal["reaction"] = "reaction"

    rounds: int
    max_average_ms: int
    instructions: str


ChallengeContent = Annotated[
    Union[
        ArithmeticContent,
        MemoryContent,
        TypingContent,
        ExerciseContent,
        BreathingContent,
        PuzzleContent,
        ReactionContent,
    ],
    Field(discriminator="kind"),
]

_CONTENT_ADAPTER: TypeAdapter[ChallengeContent] = TypeAdapter(ChallengeContent)


def parse_content(data: dict[str, Any]) -> ChallengeContent:
    """Rebuild a payload from its stored JSON form."""
    return _CONTENT_ADAPTER.validate_python(data)
