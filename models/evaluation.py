"""Evaluation models: per-request values flowing through the answer pipeline.

Everything here is owned by a single request: prompt variables, backend
exchanges, parsed replies and the aggregated score.
"""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator

from models.base import FrozenModel

# Placeholder tokens understood by the prompt templates.
THEIR_ANSWER = "THEIR_ANSWER"
QUESTION = "QUESTION"
CATEGORY = "CATEGORY"


class PromptVariables(FrozenModel):
    """Values substituted into prompt templates.

    ``category`` is unknown until the category stage completes; use
    :meth:`with_category` to obtain the extended set for later stages.
    """

    answer: str
    question: str
    category: str | None = None

    def with_category(self, category: str) -> PromptVariables:
        return self.model_copy(update={"category": category})

    def substitutions(self) -> dict[str, str]:
        """Placeholder → value map, in a fixed key order."""
        subs = {THEIR_ANSWER: self.answer, QUESTION: self.question}
        if self.category is not None:
            subs[CATEGORY] = self.category
        return subs


class ChatResult(FrozenModel):
    """One backend exchange: raw reply plus the reporting correlation id."""
    content: str
    evaluation_id: str = ""


class _StructuredReply(FrozenModel):
    confidence: str = ""
    reasoning: str = ""

    @field_validator("confidence", "reasoning", mode="before")
    @classmethod
    def _stringify(cls, value):
        # Models sometimes answer confidence as a number (0.8) instead of text.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CategoryReply(_StructuredReply):
    """``{"category": ..., "confidence": ..., "reasoning": ...}``"""
    category: str


class ScoreReply(_StructuredReply):
    """``{"score": 0-N, "confidence": ..., "reasoning": ...}``"""
    score: int


class PartialScore(FrozenModel):
    possible_score: int = Field(ge=0)
    score: int
    reasoning: str = ""
    out_of_range: bool = False  # backend reported a score outside [0, possible]


class ScoreResult(FrozenModel):
    """Aggregated score; totals always equal the sums of ``parts``."""

    score: int
    possible_score: int
    parts: tuple[PartialScore, ...] = ()

    @model_validator(mode="after")
    def _totals_match_parts(self) -> ScoreResult:
        if self.score != sum(p.score for p in self.parts):
            raise ValueError("score must equal the sum of part scores")
        if self.possible_score != sum(p.possible_score for p in self.parts):
            raise ValueError("possible_score must equal the sum of part possible scores")
        return self

    @classmethod
    def from_parts(cls, parts: list[PartialScore] | tuple[PartialScore, ...]) -> ScoreResult:
        parts = tuple(parts)
        return cls(
            score=sum(p.score for p in parts),
            possible_score=sum(p.possible_score for p in parts),
            parts=parts,
        )


class EvaluationResult(FrozenModel):
    """What the pipeline hands back for one answered question."""
    response: str
    category: str
    score: int
    possible_score: int
    evaluation_id: str = ""
    score_parts: tuple[PartialScore, ...] = ()
