"""Test doubles and builders shared across the test modules."""

from __future__ import annotations

import asyncio

from models.evaluation import ChatResult, PromptVariables
from models.question import QuestionDefinition, QuestionPrompts, ScoringRubric
from services.prompt_template import render

CATEGORY_PROMPT = "Categorize: QUESTION / THEIR_ANSWER"
RESPONSE_PROMPT = "Respond to a CATEGORY answer: THEIR_ANSWER"
SCORE_PROMPT_A = "Score A (CATEGORY): THEIR_ANSWER"
SCORE_PROMPT_B = "Score B (CATEGORY): THEIR_ANSWER"


def make_question(
    scoring_prompts: tuple[ScoringRubric, ...] | None = None,
    pointy_words: tuple[str, ...] = ("signal", "trace"),
) -> QuestionDefinition:
    if scoring_prompts is None:
        scoring_prompts = (
            ScoringRubric(prompt=SCORE_PROMPT_A, maximum_score=5, description="depth"),
            ScoringRubric(prompt=SCORE_PROMPT_B, maximum_score=3, description="clarity"),
        )
    return QuestionDefinition(
        id="q-1",
        question="How do you know it works?",
        version="v2",
        prompts_v2=QuestionPrompts(
            category_prompt=CATEGORY_PROMPT,
            response_prompt=RESPONSE_PROMPT,
            scoring_prompts=scoring_prompts,
            pointy_words=pointy_words,
        ),
    )


class ScriptedGateway:
    """Stands in for ChatGateway: replies are looked up by prompt template.

    A reply may be a string, an exception instance (raised), or a
    ``(delay_seconds, reply)`` tuple.  Every call is recorded with its
    rendered prompt.
    """

    def __init__(self, replies: dict[str, object]):
        self.replies = replies
        self.calls: list[dict] = []
        self.cancelled: list[str] = []

    async def chat(
        self,
        raw_answer: str,
        prompt_template: str,
        variables: PromptVariables,
        want_structured: bool,
    ) -> ChatResult:
        self.calls.append({
            "template": prompt_template,
            "prompt": render(prompt_template, variables.substitutions()),
            "structured": want_structured,
            "variables": variables,
        })
        reply = self.replies[prompt_template]
        if isinstance(reply, tuple):
            delay, reply = reply
            try:
                await asyncio.sleep(delay)
            except asyncio.CancelledError:
                self.cancelled.append(prompt_template)
                raise
        if isinstance(reply, Exception):
            raise reply
        return ChatResult(content=reply, evaluation_id=f"eval-{len(self.calls)}")

    def templates_called(self) -> list[str]:
        return [c["template"] for c in self.calls]

