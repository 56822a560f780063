"""Answer submission endpoint.

``POST /api/questions/{question_id}/answer`` runs the evaluation pipeline on
the attendee's answer and, when the request carries an execution id, records
the scored answer in the result store.
"""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from agents.answer_pipeline import AnswerEvaluationPipeline, get_answer_pipeline
from api.deps import get_event_name, get_execution_id, get_trace_id, log_attendee_key
from config.settings import Settings, get_settings
from errors.exceptions import AnswerValidationError, EvaluationTimeoutError, StorageError
from models.request import AnswerRequest, AnswerResponse
from services.question_catalog import QuestionCatalog, get_question_catalog
from services.result_store import ResultStore, get_result_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["answers"])


@router.post(
    "/questions/{question_id}/answer",
    response_model=AnswerResponse,
    dependencies=[Depends(log_attendee_key)],
)
async def post_answer(
    question_id: str,
    request: Request,
    event_name: str = Depends(get_event_name),
    execution_id: str | None = Depends(get_execution_id),
    trace_id: str = Depends(get_trace_id),
    catalog: QuestionCatalog = Depends(get_question_catalog),
    pipeline: AnswerEvaluationPipeline = Depends(get_answer_pipeline),
    store: ResultStore = Depends(get_result_store),
    settings: Settings = Depends(get_settings),
):
    """Evaluate one answer: category, response and score."""
    try:
        body = AnswerRequest.model_validate_json(await request.body())
    except ValidationError:
        raise AnswerValidationError() from None

    question = catalog.find_question(event_name, question_id)

    try:
        result = await asyncio.wait_for(
            pipeline.evaluate(question, body.answer),
            timeout=settings.request_timeout_seconds,
        )
    except TimeoutError:
        logger.error(
            "Evaluation of %s timed out after %.0fs", question_id, settings.request_timeout_seconds,
        )
        raise EvaluationTimeoutError() from None

    if execution_id:
        try:
            await store.add_result(
                execution_id=execution_id,
                event_name=event_name,
                question_id=question_id,
                answer=body.answer,
                trace_id=trace_id,
                score=result.score,
            )
        except StorageError:
            logger.warning("Result for execution %s not saved; returning evaluation anyway", execution_id)
    else:
        logger.info("No execution id on answer to %s; result not saved", question_id)

    return AnswerResponse(
        response=result.response,
        score=result.score,
        possible_score=result.possible_score,
        evaluation_id=result.evaluation_id,
    )
