"""Result endpoints: an attendee's answers and an event's leaderboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_execution_id
from errors.exceptions import ExecutionIdRequiredError
from models.result import Result, ResultSummary
from services.question_catalog import QuestionCatalog, get_question_catalog
from services.result_store import ResultStore, get_result_store

router = APIRouter(prefix="/api", tags=["results"])


@router.get("/results", response_model=list[Result])
async def get_execution_results(
    execution_id: str | None = Depends(get_execution_id),
    store: ResultStore = Depends(get_result_store),
):
    """Result rows for the execution named in ``x-observaquiz-execution-id``."""
    if not execution_id:
        raise ExecutionIdRequiredError()
    return await store.get_execution_results(execution_id)


@router.get("/events/{event_name}/results", response_model=list[ResultSummary])
async def get_event_results(
    event_name: str,
    catalog: QuestionCatalog = Depends(get_question_catalog),
    store: ResultStore = Depends(get_result_store),
):
    """Execution summaries for an event, highest total first."""
    catalog.questions_for(event_name)
    return await store.get_all_results_for_event(event_name)
