"""Score aggregation: model-judged rubrics plus deterministic keyword scoring."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from errors.exceptions import ScoreParseError
from models.evaluation import PartialScore, PromptVariables, ScoreReply, ScoreResult
from models.question import QuestionDefinition, ScoringRubric
from services.chat_gateway import ChatGateway

logger = logging.getLogger(__name__)


def keyword_score(pointy_words: tuple[str, ...] | list[str], answer: str) -> PartialScore:
    """One point per pointy word found in *answer* (case-sensitive substring)."""
    matched = [w for w in pointy_words if w in answer]
    if pointy_words:
        reasoning = f"Matched {len(matched)} of {len(pointy_words)} keywords"
        if matched:
            reasoning += ": " + ", ".join(matched)
    else:
        reasoning = "No keywords configured"
    return PartialScore(
        possible_score=len(pointy_words),
        score=len(matched),
        reasoning=reasoning,
    )


class ScoreAggregator:
    """Runs a question's scoring rubrics and sums them into a ScoreResult.

    Rubrics are evaluated one at a time in list order.  Any reply that does
    not parse aborts the whole score; there is no partial or default result.
    """

    def __init__(self, gateway: ChatGateway, clamp: bool = False):
        self._gateway = gateway
        self._clamp = clamp

    async def score(
        self,
        question: QuestionDefinition,
        answer: str,
        variables: PromptVariables,
    ) -> ScoreResult:
        parts: list[PartialScore] = []
        for index, rubric in enumerate(question.prompts_v2.scoring_prompts):
            parts.append(await self._score_rubric(question.id, index, rubric, answer, variables))

        parts.append(keyword_score(question.prompts_v2.pointy_words, answer))
        result = ScoreResult.from_parts(parts)
        logger.info(
            "Scored question %s: %d/%d over %d parts",
            question.id, result.score, result.possible_score, len(parts),
        )
        return result

    async def _score_rubric(
        self,
        question_id: str,
        index: int,
        rubric: ScoringRubric,
        answer: str,
        variables: PromptVariables,
    ) -> PartialScore:
        reply = await self._gateway.chat(answer, rubric.prompt, variables, want_structured=True)
        try:
            parsed = ScoreReply.model_validate_json(reply.content)
        except ValidationError as exc:
            logger.warning(
                "Unparseable score reply for question %s rubric %d: %s",
                question_id, index, exc.errors()[:1],
            )
            raise ScoreParseError() from exc

        score = parsed.score
        out_of_range = not 0 <= score <= rubric.maximum_score
        if out_of_range:
            logger.warning(
                "Question %s rubric %d scored %d outside [0, %d]%s",
                question_id, index, score, rubric.maximum_score,
                " (clamped)" if self._clamp else "",
            )
            if self._clamp:
                score = min(max(score, 0), rubric.maximum_score)

        return PartialScore(
            possible_score=rubric.maximum_score,
            score=score,
            reasoning=parsed.reasoning,
            out_of_range=out_of_range,
        )
