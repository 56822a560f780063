"""HTTP client for the LLM evaluation-reporting service (Deepchecks).

Every chat exchange is reported as an *interaction* so its quality can be
reviewed later; attendees' opinions on a response are forwarded as
*annotations* on that interaction.

Wraps ``httpx.AsyncClient`` with:
- base URL + Basic auth header construction
- connection-pool lifecycle tied to FastAPI lifespan
- request timing logs
- failure isolation: reporting problems are logged, never raised
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from config.settings import get_settings
from models.request import EVALUATION_ID_PATTERN, Annotation
from services.middleware import current_trace_id, new_span_id, new_trace_id

logger = logging.getLogger(__name__)

_EVALUATION_ID_RE = re.compile(EVALUATION_ID_PATTERN)

_reporter: EvaluationReporter | None = None


@dataclass(frozen=True)
class InteractionDescription:
    """One LLM exchange as the reporting service sees it."""

    full_prompt: str
    input: str
    output: str
    started_at: datetime
    finished_at: datetime
    model: str


@dataclass(frozen=True)
class OpinionReport:
    reported: bool
    success: bool
    message: str = ""


def mask_secret(value: str) -> str:
    """Replace the first 80% of *value* with ``*`` for log output."""
    mask_length = int(len(value) * 0.8)
    return "*" * mask_length + value[mask_length:]


class EvaluationReporter:
    """Async client for the reporting service's interactions API."""

    def __init__(self) -> None:
        settings = get_settings()
        self._base_url = settings.deepchecks_base_url.rstrip("/") + "/"
        self._api_key = settings.deepchecks_api_key
        self._timeout = settings.deepchecks_timeout
        self._app_name = settings.deepchecks_app_name
        self._app_version = settings.deepchecks_app_version
        self._env_type = settings.deepchecks_env_type
        self._environment = settings.deepchecks_environment
        self._http: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the underlying ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = self._build_client()
        logger.info(
            "EvaluationReporter started: base_url=%s, enabled=%s, key=%s",
            self._base_url, self.enabled, mask_secret(self._api_key),
        )

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("EvaluationReporter closed")

    # -- public API ----------------------------------------------------------

    async def report_interaction(self, description: InteractionDescription) -> str:
        """Report one exchange and return its evaluation id.

        Returns ``""`` when reporting is disabled.  The id is assigned locally
        before sending, so it is returned even if the service is unreachable.
        """
        if not self.enabled:
            return ""

        trace_id = current_trace_id.get() or new_trace_id()
        interaction_id = f"{trace_id}-{new_span_id()}"
        payload = {
            "app_name": self._app_name,
            "version_name": self._app_version,
            "env_type": self._env_type,
            "interactions": [{
                "user_interaction_id": interaction_id,
                "full_prompt": description.full_prompt,
                "input": description.input,
                "output": description.output,
                "raw_json_data": {},
                "started_at": description.started_at.isoformat(),
                "finished_at": description.finished_at.isoformat(),
                "custom_props": {
                    "Environment": self._environment,
                    "Model": description.model,
                },
            }],
        }
        await self._send("POST", "interactions", payload)
        return interaction_id

    async def report_opinion(
        self,
        evaluation_id: str,
        annotation: Annotation,
        app_version_id: str,
    ) -> OpinionReport:
        """Attach an attendee's annotation to a previously reported interaction."""
        if not self.enabled:
            return OpinionReport(reported=False, success=True)
        if not _EVALUATION_ID_RE.fullmatch(evaluation_id):
            logger.warning("Refusing opinion for malformed evaluation id %r", evaluation_id)
            return OpinionReport(reported=False, success=False, message="Invalid evaluation id")

        path = f"application_versions/{app_version_id}/interactions/{evaluation_id}"
        response = await self._send("PUT", path, {"annotation": annotation.value})
        if response is None:
            return OpinionReport(reported=True, success=False, message="Reporting service unreachable")
        return OpinionReport(
            reported=True,
            success=response.is_success,
            message=response.reason_phrase,
        )

    # -- internals -----------------------------------------------------------

    async def _send(self, method: str, path: str, body: dict[str, Any]) -> httpx.Response | None:
        """Send one request; log and return None on transport failure."""
        client = self._ensure_started()
        t0 = time.monotonic()
        try:
            response = await client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            logger.warning(
                "%s %s → reporting failed (%.0fms): %s",
                method, path, (time.monotonic() - t0) * 1000, exc,
            )
            return None

        elapsed_ms = (time.monotonic() - t0) * 1000
        if response.is_success:
            logger.info("%s %s → %d (%.0fms)", method, path, response.status_code, elapsed_ms)
        else:
            logger.warning(
                "%s %s → %d (%.0fms): %s",
                method, path, response.status_code, elapsed_ms, response.text[:300],
            )
        return response

    def _build_client(self, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers={
                "accept": "application/json",
                "Authorization": f"Basic {self._api_key}",
            },
            transport=transport,
        )

    def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = self._build_client()
        return self._http


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

def get_evaluation_reporter() -> EvaluationReporter:
    """Return the module-level EvaluationReporter singleton (create if needed)."""
    global _reporter
    if _reporter is None:
        _reporter = EvaluationReporter()
    return _reporter
