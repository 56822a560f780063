"""FastAPI middleware: trace id correlation (pure ASGI, streaming-safe)."""

from __future__ import annotations

import contextvars
import re
import uuid

from starlette.types import ASGIApp, Message, Receive, Scope, Send

# ContextVar so services (reporter, result store) can read the current trace
# id without threading it through every signature.
current_trace_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "current_trace_id", default=""
)

_TRACEPARENT_RE = re.compile(r"^[0-9a-f]{2}-([0-9a-f]{32})-[0-9a-f]{16}-[0-9a-f]{2}$")


def new_trace_id() -> str:
    return uuid.uuid4().hex


def new_span_id() -> str:
    return uuid.uuid4().hex[:16]


def trace_id_from_traceparent(value: str) -> str | None:
    """Extract the trace id from a W3C ``traceparent`` header, if well-formed."""
    match = _TRACEPARENT_RE.match(value.strip().lower())
    if match is None or match.group(1) == "0" * 32:
        return None
    return match.group(1)


class TraceIdMiddleware:
    """Give every HTTP request a trace id and echo it back to the caller.

    Uses pure ASGI implementation (no BaseHTTPMiddleware).

    If the client sends ``traceparent``, its trace id is reused; otherwise a
    new one is generated.  The id is stored in ``scope["state"]["trace_id"]``
    and in :data:`current_trace_id`, and returned as ``x-request-id`` plus an
    ``x-tracechild`` header in traceparent form.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        traceparent = headers.get(b"traceparent", b"").decode("latin-1")
        trace_id = trace_id_from_traceparent(traceparent) if traceparent else None
        trace_id = trace_id or new_trace_id()
        span_id = new_span_id()

        scope.setdefault("state", {})
        scope["state"]["trace_id"] = trace_id

        async def send_with_trace(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", trace_id.encode()))
                headers.append((b"x-tracechild", f"00-{trace_id}-{span_id}-01".encode()))
                message["headers"] = headers
            await send(message)

        token = current_trace_id.set(trace_id)
        try:
            await self.app(scope, receive, send_with_trace)
        finally:
            current_trace_id.reset(token)
