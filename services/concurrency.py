"""Global concurrency controls for LLM API calls and answer submissions.

Prevents overwhelming provider rate limits under load.  Uses
asyncio.Semaphore to cap the number of *concurrent* outbound LLM requests
per worker process.

All middleware uses pure ASGI implementation (not BaseHTTPMiddleware).
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Callable, Coroutine

from starlette.types import ASGIApp, Receive, Scope, Send

from config.settings import get_settings
from models.errors import ErrorCode, error_envelope

logger = logging.getLogger(__name__)

# ── Global LLM semaphore ─────────────────────────────────────
# One answer costs 2 + len(scoring_prompts) LLM calls, so the
# semaphore is sized in calls, not requests.

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().llm_max_concurrency
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("LLM concurrency semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Execute an async LLM function with concurrency limiting.

    Usage::

        result = await rate_limited_llm_call(llm.achat, messages, config)
    """
    sem = _get_semaphore()
    async with sem:
        return await func(*args, **kwargs)


# ── Answer submission concurrency middleware (pure ASGI) ──────
# Requests that exceed the limit receive 503 instead of queuing until
# the request timeout expires.

_ANSWER_PATH_RE = re.compile(r"^/api/questions/[^/]+/answer$")
_answer_semaphore: asyncio.Semaphore | None = None


def _get_answer_semaphore() -> asyncio.Semaphore:
    global _answer_semaphore
    if _answer_semaphore is None:
        limit = get_settings().max_concurrent_answers
        _answer_semaphore = asyncio.Semaphore(limit)
        logger.info("Answer endpoint semaphore initialized (max=%d)", limit)
    return _answer_semaphore


class ConcurrencyLimitMiddleware:
    """Pure ASGI middleware: reject answer submissions when the worker is at capacity.

    Returns HTTP 503 with a Retry-After header.  Every other endpoint passes
    through unaffected.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if scope.get("method") != "POST" or not _ANSWER_PATH_RE.match(path):
            await self.app(scope, receive, send)
            return

        sem = _get_answer_semaphore()

        # Try to acquire without blocking: if full, return 503
        if sem.locked():
            logger.warning("Concurrency limit reached for %s: returning 503", path)
            trace_id = scope.get("state", {}).get("trace_id", "")
            body = json.dumps(error_envelope(
                ErrorCode.SERVICE_BUSY,
                "Server busy: too many concurrent requests. Please retry.",
                trace_id,
            )).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({
                "type": "http.response.body",
                "body": body,
            })
            return

        async with sem:
            await self.app(scope, receive, send)
