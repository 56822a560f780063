"""Persisted result rows.

Both row types share one table keyed by execution id and are told apart by
``type``.  ``execution_id`` is stored as ``quiz_run_id``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from models.base import FrozenModel

RESULT_TYPE = "result"
SUMMARY_TYPE = "summary"


class Result(FrozenModel):
    """One answered question.  Append-only."""

    execution_id: str = Field(alias="quiz_run_id")
    type: Literal["result"] = RESULT_TYPE
    event_name: str
    question_id: str
    answer: str
    trace_id: str = ""
    score: int


class ResultSummary(FrozenModel):
    """Running total for one execution (quiz run)."""

    execution_id: str = Field(alias="quiz_run_id")
    type: Literal["summary"] = SUMMARY_TYPE
    event_name: str
    total_score: int = 0
