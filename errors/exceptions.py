"""Domain-specific exceptions for the quiz answer service.

These exceptions let the pipeline and API layers distinguish between
failure modes and answer with the right status code and error envelope.
"""

from __future__ import annotations

from models.errors import ErrorCode


class QuizError(Exception):
    """Base class for every failure that maps to an error response."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AnswerValidationError(QuizError):
    """The submitted body does not have the expected shape."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Bad request. Expected format: { 'answer': 'stuff' }"


class EventNotFoundError(QuizError):
    code = ErrorCode.EVENT_NOT_FOUND
    status_code = 404

    def __init__(self, event_name: str) -> None:
        self.event_name = event_name
        super().__init__(f"Couldn't find event name {event_name}")


class QuestionNotFoundError(QuizError):
    code = ErrorCode.QUESTION_NOT_FOUND
    status_code = 404
    default_message = "Couldn't find question with that ID"

    def __init__(self, question_id: str) -> None:
        self.question_id = question_id
        super().__init__()


class BackendUnreachableError(QuizError):
    """The chat backend failed (transport, HTTP or provider error)."""

    code = ErrorCode.BACKEND_UNREACHABLE
    status_code = 502
    default_message = "Could not reach LLM. No fallback in place"


class CategoryParseError(QuizError):
    """The category stage reply is not valid structured output."""

    code = ErrorCode.CATEGORY_PARSE_ERROR
    default_message = "Could not parse category response"


class ScoreParseError(QuizError):
    """A scoring rubric reply is not valid structured output."""

    code = ErrorCode.SCORE_PARSE_ERROR
    default_message = "Could not parse score response"


class EvaluationTimeoutError(QuizError):
    code = ErrorCode.TIMEOUT
    status_code = 504
    default_message = "Evaluation timed out"


class StorageError(QuizError):
    """Reading or writing result rows failed."""

    code = ErrorCode.STORAGE_ERROR
    default_message = "Error reading results"


class ExecutionIdRequiredError(QuizError):
    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Missing x-observaquiz-execution-id header"
