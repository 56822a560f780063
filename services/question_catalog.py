"""Question catalog: event question sets loaded from bundled JSON.

Each event lives in ``<questions_dir>/<event_name>/questions.json`` holding a
list of question definitions.  The catalog is built once and shared
read-only by every request.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import ValidationError

from config.settings import get_settings
from errors.exceptions import EventNotFoundError, QuestionNotFoundError
from models.question import QuestionDefinition

logger = logging.getLogger(__name__)

BUNDLED_QUESTIONS_DIR = Path(__file__).parent.parent / "config" / "questions"


class QuestionCatalog:
    """Immutable mapping of event name → ordered question definitions."""

    def __init__(
        self,
        events: Mapping[str, tuple[QuestionDefinition, ...] | list[QuestionDefinition]],
        default_event: str,
    ):
        self._events = MappingProxyType({name: tuple(qs) for name, qs in events.items()})
        self._default_event = default_event

    @property
    def default_event(self) -> str:
        return self._default_event

    @property
    def event_names(self) -> list[str]:
        return sorted(self._events)

    def questions_for(self, event_name: str) -> tuple[QuestionDefinition, ...]:
        """Return the question set for *event_name*.

        Raises:
            EventNotFoundError: no such event is configured.
        """
        try:
            return self._events[event_name]
        except KeyError:
            raise EventNotFoundError(event_name) from None

    def find_question(self, event_name: str, question_id: str) -> QuestionDefinition:
        for question in self.questions_for(event_name):
            if question.id == question_id:
                return question
        raise QuestionNotFoundError(question_id)


def _load_event(path: Path) -> tuple[QuestionDefinition, ...]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return tuple(QuestionDefinition.model_validate(item) for item in data)


def load_question_catalog(
    questions_dir: str | Path | None = None,
    default_event: str | None = None,
) -> QuestionCatalog:
    """Read every ``<event>/questions.json`` under *questions_dir*.

    A file that cannot be read or validated is a startup error: it is
    logged and re-raised rather than silently dropping the event.
    """
    settings = get_settings()
    root = Path(questions_dir or settings.questions_dir or BUNDLED_QUESTIONS_DIR)
    default_event = default_event or settings.default_event_name

    events: dict[str, tuple[QuestionDefinition, ...]] = {}
    for path in sorted(root.glob("*/questions.json")):
        event_name = path.parent.name
        try:
            events[event_name] = _load_event(path)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.error("Failed to load questions for event %s from %s: %s", event_name, path, e)
            raise
        logger.info("Loaded %d questions for event %s", len(events[event_name]), event_name)

    if default_event not in events:
        logger.warning("Default event %s has no question set in %s", default_event, root)
    return QuestionCatalog(events, default_event)


@lru_cache
def get_question_catalog() -> QuestionCatalog:
    """Cached catalog built from the configured questions directory."""
    return load_question_catalog()
