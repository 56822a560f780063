"""Event and question-set endpoints.

Endpoints:
- ``GET /api/events``    : configured event names
- ``GET /api/questions`` : questions for the event in the ``event-name`` header
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_event_name, log_attendee_key
from models.request import QuestionsResponse, QuestionView
from services.question_catalog import QuestionCatalog, get_question_catalog

router = APIRouter(prefix="/api", tags=["questions"])


@router.get("/events")
async def list_events(catalog: QuestionCatalog = Depends(get_question_catalog)) -> list[str]:
    return catalog.event_names


@router.get(
    "/questions",
    response_model=QuestionsResponse,
    dependencies=[Depends(log_attendee_key)],
)
async def get_questions(
    event_name: str = Depends(get_event_name),
    catalog: QuestionCatalog = Depends(get_question_catalog),
):
    """Question set for the event.  Prompts and rubrics are never exposed."""
    questions = catalog.questions_for(event_name)
    return QuestionsResponse(
        question_set=event_name,
        questions=[QuestionView(**q.public_view()) for q in questions],
    )
