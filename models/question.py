"""Question definitions: prompts, scoring rubrics and keywords per question.

Loaded once at startup from ``config/questions/<event>/questions.json`` and
never mutated afterwards.
"""

from __future__ import annotations

from pydantic import Field

from models.base import FrozenModel


class ScoringRubric(FrozenModel):
    """One model-judged scoring prompt paired with its maximum score."""
    prompt: str
    maximum_score: int = Field(ge=0)
    description: str = ""


class QuestionPrompts(FrozenModel):
    """Prompt templates for the category → response → score sequence."""
    category_prompt: str
    response_prompt: str
    scoring_prompts: tuple[ScoringRubric, ...] = ()
    pointy_words: tuple[str, ...] = ()  # one point each if present in the answer


class QuestionDefinition(FrozenModel):
    id: str
    question: str
    version: str = ""
    prompts_v2: QuestionPrompts

    def public_view(self) -> dict[str, str]:
        """Fields safe to show attendees; prompts stay server-side."""
        return {"id": self.id, "question": self.question, "version": self.version}
