"""Shared pytest fixtures for the answer-evaluation tests.

Provides:
- ``question``:          QuestionDefinition with two rubrics and pointy words
- ``scripted_gateway``:  factory for a gateway that answers by prompt template
- ``good_replies``:      well-formed replies for every stage of ``question``
- ``result_store``:      fresh InMemoryResultStore per test
"""

from __future__ import annotations

import pytest

from models.question import QuestionDefinition
from services.result_store import InMemoryResultStore
from tests.fakes import (
    CATEGORY_PROMPT,
    RESPONSE_PROMPT,
    SCORE_PROMPT_A,
    SCORE_PROMPT_B,
    ScriptedGateway,
    make_question,
)


@pytest.fixture
def question() -> QuestionDefinition:
    return make_question()


@pytest.fixture
def scripted_gateway():
    """Factory: ``scripted_gateway({template: reply, ...})``."""
    return ScriptedGateway


@pytest.fixture
def good_replies() -> dict[str, object]:
    return {
        CATEGORY_PROMPT: '{"category": "observability", "confidence": "high", "reasoning": "mentions traces"}',
        RESPONSE_PROMPT: "Nice! Traces are a great start.",
        SCORE_PROMPT_A: '{"score": 4, "confidence": "high", "reasoning": "solid"}',
        SCORE_PROMPT_B: '{"score": 2, "confidence": 0.7, "reasoning": "ok"}',
    }


@pytest.fixture
def result_store() -> InMemoryResultStore:
    """Fresh result store: isolated per test."""
    return InMemoryResultStore()


@pytest.fixture(autouse=True)
def _fresh_semaphores(monkeypatch):
    """Semaphores bind to the event loop that first waits on them."""
    import services.concurrency as concurrency

    monkeypatch.setattr(concurrency, "_llm_semaphore", None)
    monkeypatch.setattr(concurrency, "_answer_semaphore", None)
