"""Custom exception hierarchy for the quiz answer service."""

from errors.exceptions import (
    AnswerValidationError,
    BackendUnreachableError,
    CategoryParseError,
    EvaluationTimeoutError,
    EventNotFoundError,
    ExecutionIdRequiredError,
    QuestionNotFoundError,
    QuizError,
    ScoreParseError,
    StorageError,
)

__all__ = [
    "AnswerValidationError",
    "BackendUnreachableError",
    "CategoryParseError",
    "EvaluationTimeoutError",
    "EventNotFoundError",
    "ExecutionIdRequiredError",
    "QuestionNotFoundError",
    "QuizError",
    "ScoreParseError",
    "StorageError",
]
