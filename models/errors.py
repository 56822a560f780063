"""Structured error codes and the JSON error envelope.

Every failed request is answered with exactly one envelope::

    {"error": "<human readable>", "code": "<ERROR_CODE>", "trace_id": "<id>"}

The trace id is the only internal identifier exposed; it is meant for support.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Canonical error codes returned to the quiz frontend."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    QUESTION_NOT_FOUND = "QUESTION_NOT_FOUND"
    BACKEND_UNREACHABLE = "BACKEND_UNREACHABLE"
    CATEGORY_PARSE_ERROR = "CATEGORY_PARSE_ERROR"
    SCORE_PARSE_ERROR = "SCORE_PARSE_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    TIMEOUT = "TIMEOUT"
    SERVICE_BUSY = "SERVICE_BUSY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_envelope(code: ErrorCode, message: str, trace_id: str = "") -> dict[str, str]:
    """Build the JSON body for an error response."""
    return {"error": message, "code": code.value, "trace_id": trace_id}


def format_error(code: ErrorCode, detail: str) -> str:
    """Format an error for log lines: ``{ERROR_CODE}: {detail}``."""
    return f"{code.value}: {detail}"
