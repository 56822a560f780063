"""API request / response models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

# Minted by the reporter as <trace_id>-<span_id>
EVALUATION_ID_PATTERN = r"^[0-9a-f]{32}-[0-9a-f]{16}$"


class AnswerRequest(BaseModel):
    """POST /api/questions/{questionId}/answer: request body."""

    answer: str


class AnswerResponse(BaseModel):
    """POST /api/questions/{questionId}/answer: response body."""

    response: str
    score: int
    possible_score: int
    evaluation_id: str = ""


class QuestionView(BaseModel):
    id: str
    question: str
    version: str = ""


class QuestionsResponse(BaseModel):
    """GET /api/questions: response body."""

    question_set: str
    questions: list[QuestionView]


class Annotation(str, Enum):
    GOOD = "good"
    BAD = "bad"
    UNKNOWN = "unknown"


OPINION_TO_ANNOTATION: dict[str, Annotation] = {
    "whoa": Annotation.GOOD,
    "yeah": Annotation.GOOD,
    "meh": Annotation.BAD,
    "ok": Annotation.UNKNOWN,
}


def annotation_for(opinion: str) -> Annotation:
    """Map an attendee's opinion word to a reporting annotation."""
    return OPINION_TO_ANNOTATION.get(opinion, Annotation.UNKNOWN)


class OpinionRequest(BaseModel):
    """POST /api/opinion: request body."""

    evaluation_id: str = Field(pattern=EVALUATION_ID_PATTERN)
    opinion: str


class OpinionResponse(BaseModel):
    """POST /api/opinion: response body."""

    evaluation_id: str
    opinion: str
    annotation: Annotation
    reported: bool
    success: bool
    message: str = ""
