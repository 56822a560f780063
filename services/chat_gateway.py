"""Chat gateway: one backend exchange per call, reported for evaluation.

Every stage of the answer pipeline (category, response, each scoring rubric)
goes through :meth:`ChatGateway.chat`: render the prompt, send it as a single
system message, report the exchange, return the raw reply.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from config.llm_config import LLMConfig
from errors.exceptions import BackendUnreachableError
from models.evaluation import ChatResult, PromptVariables
from services.concurrency import rate_limited_llm_call
from services.evaluation_reporter import (
    EvaluationReporter,
    InteractionDescription,
    get_evaluation_reporter,
)
from services.llm_service import LLMService
from services.prompt_template import render

logger = logging.getLogger(__name__)

_STRUCTURED = LLMConfig(response_format="json_object")
_FREE_TEXT = LLMConfig(response_format="text")


class ChatGateway:
    """Sends rendered prompts to the LLM backend."""

    def __init__(
        self,
        llm: LLMService | None = None,
        reporter: EvaluationReporter | None = None,
    ):
        self._llm = llm or LLMService()
        self._reporter = reporter or get_evaluation_reporter()

    async def chat(
        self,
        raw_answer: str,
        prompt_template: str,
        variables: PromptVariables,
        want_structured: bool,
    ) -> ChatResult:
        """Run one exchange.

        Args:
            raw_answer:      The attendee's answer, reported as the interaction input.
            prompt_template: Template with placeholder tokens.
            variables:       Values for the placeholders.
            want_structured: Ask the backend for a JSON object instead of text.

        Raises:
            BackendUnreachableError: the backend call failed for any reason.
        """
        prompt = render(prompt_template, variables.substitutions())
        messages = [{"role": "system", "content": prompt}]
        config = _STRUCTURED if want_structured else _FREE_TEXT

        started_at = datetime.now(timezone.utc)
        t0 = time.monotonic()
        try:
            reply = await rate_limited_llm_call(self._llm.achat, messages, config)
        except Exception as exc:
            logger.error(
                "LLM call failed after %.0fms: %s: %s",
                (time.monotonic() - t0) * 1000, type(exc).__name__, exc,
            )
            raise BackendUnreachableError() from exc
        finished_at = datetime.now(timezone.utc)

        content = reply["content"]
        logger.info(
            "LLM %s reply in %.0fms (model=%s, finish=%s, tokens=%s/%s)",
            "json" if want_structured else "text",
            (time.monotonic() - t0) * 1000,
            reply["model"],
            reply["finish_reason"],
            reply["usage"]["input_tokens"],
            reply["usage"]["output_tokens"],
        )

        evaluation_id = await self._report(InteractionDescription(
            full_prompt=prompt,
            input=raw_answer,
            output=content,
            started_at=started_at,
            finished_at=finished_at,
            model=reply["model"] or (self._llm.model or ""),
        ))
        return ChatResult(content=content, evaluation_id=evaluation_id)

    async def _report(self, description: InteractionDescription) -> str:
        try:
            return await self._reporter.report_interaction(description)
        except Exception:
            logger.exception("Reporting the interaction failed")
            return ""
