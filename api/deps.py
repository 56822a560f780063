"""Shared FastAPI dependencies: request headers and service singletons."""

from __future__ import annotations

import logging

from fastapi import Depends, Header, Request

from services.evaluation_reporter import mask_secret
from services.middleware import current_trace_id
from services.question_catalog import QuestionCatalog, get_question_catalog

logger = logging.getLogger(__name__)


def get_event_name(
    event_name: str | None = Header(None, alias="event-name"),
    catalog: QuestionCatalog = Depends(get_question_catalog),
) -> str:
    """Event selected by the ``event-name`` header, or the default event."""
    return event_name or catalog.default_event


def get_execution_id(
    execution_id: str | None = Header(None, alias="x-observaquiz-execution-id"),
) -> str | None:
    return execution_id or None


def get_trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "") or current_trace_id.get()


def log_attendee_key(
    api_key: str | None = Header(None, alias="x-honeycomb-api-key"),
) -> None:
    """Record which attendee key made the request, masked."""
    if api_key:
        logger.info("Attendee API key: %s", mask_secret(api_key))
