"""Answer evaluation pipeline: Category → (Response ‖ Score).

Stage 1 (Category): structured chat classifying the attendee's answer
Stage 2 (Response): free-text reply, prompted with the category
Stage 3 (Score):    scoring rubrics plus keyword matching, prompted with the category

Stages 2 and 3 only depend on the category, so they run concurrently in an
``asyncio.TaskGroup``.  The first failure cancels the sibling and is raised
as-is; no partial result is ever returned.
"""

from __future__ import annotations

import asyncio
import logging
import time

from pydantic import ValidationError

from config.settings import get_settings
from errors.exceptions import CategoryParseError
from models.evaluation import CategoryReply, EvaluationResult, PromptVariables
from models.question import QuestionDefinition
from services.chat_gateway import ChatGateway
from services.score_aggregator import ScoreAggregator

logger = logging.getLogger(__name__)


class AnswerEvaluationPipeline:
    """Evaluates one submitted answer against its question definition."""

    def __init__(self, gateway: ChatGateway, scorer: ScoreAggregator):
        self._gateway = gateway
        self._scorer = scorer

    async def evaluate(self, question: QuestionDefinition, answer: str) -> EvaluationResult:
        t0 = time.monotonic()
        variables = PromptVariables(answer=answer, question=question.question)

        # ── Stage 1: Category ──
        category = await self._categorize(question, answer, variables)
        variables = variables.with_category(category)

        # ── Stages 2 ‖ 3: Response and Score ──
        try:
            async with asyncio.TaskGroup() as tg:
                response_task = tg.create_task(self._gateway.chat(
                    answer, question.prompts_v2.response_prompt, variables, want_structured=False,
                ))
                score_task = tg.create_task(self._scorer.score(question, answer, variables))
        except ExceptionGroup as eg:
            raise eg.exceptions[0] from None

        response = response_task.result()
        score = score_task.result()
        logger.info(
            "Evaluated answer to %s: category=%r score=%d/%d (%.0fms)",
            question.id, category, score.score, score.possible_score,
            (time.monotonic() - t0) * 1000,
        )
        return EvaluationResult(
            response=response.content,
            category=category,
            score=score.score,
            possible_score=score.possible_score,
            evaluation_id=response.evaluation_id,
            score_parts=score.parts,
        )

    async def _categorize(
        self,
        question: QuestionDefinition,
        answer: str,
        variables: PromptVariables,
    ) -> str:
        reply = await self._gateway.chat(
            answer, question.prompts_v2.category_prompt, variables, want_structured=True,
        )
        try:
            parsed = CategoryReply.model_validate_json(reply.content)
        except ValidationError as exc:
            logger.warning("Unparseable category reply for %s: %s", question.id, exc.errors()[:1])
            raise CategoryParseError() from exc
        logger.debug(
            "Category for %s: %r (confidence=%s)", question.id, parsed.category, parsed.confidence,
        )
        return parsed.category


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

_pipeline: AnswerEvaluationPipeline | None = None


def get_answer_pipeline() -> AnswerEvaluationPipeline:
    """Return the process-wide pipeline, wired from Settings on first use."""
    global _pipeline
    if _pipeline is None:
        gateway = ChatGateway()
        scorer = ScoreAggregator(gateway, clamp=get_settings().clamp_rubric_scores)
        _pipeline = AnswerEvaluationPipeline(gateway, scorer)
    return _pipeline
