"""FastAPI entry point for the Observaquiz answer-evaluation service."""

import logging
from contextlib import asynccontextmanager

import litellm
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import get_settings
from errors.exceptions import QuizError
from models.errors import ErrorCode, error_envelope, format_error
from services.concurrency import ConcurrencyLimitMiddleware
from services.evaluation_reporter import get_evaluation_reporter
from services.middleware import TraceIdMiddleware
from services.question_catalog import get_question_catalog
from services.result_store import RedisResultStore, get_result_store

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# ── Global LiteLLM settings ──────────────────────────────────
# Hard ceiling per call; the whole evaluation is bounded by request_timeout_seconds.
litellm.request_timeout = settings.request_timeout_seconds


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle: start/stop shared resources."""
    catalog = get_question_catalog()
    logger.info(
        "Question catalog ready: events=%s, default=%s",
        catalog.event_names, catalog.default_event,
    )

    reporter = get_evaluation_reporter()
    await reporter.start()

    store = get_result_store()
    if isinstance(store, RedisResultStore):
        if await store.ping():
            logger.info("Redis connection verified")
        else:
            logger.warning("Redis connection failed: results may not persist")

    yield

    await store.close()
    await reporter.close()


app = FastAPI(
    title="Observaquiz",
    description="Evaluates attendees' quiz answers with an LLM and keeps score",
    version="0.4.0",
    lifespan=lifespan,
)

# ── Middleware stack ─────────────────────────────────────────
# add_middleware wraps, so the last one added runs first:
# CORS → TraceId → ConcurrencyLimit → route handler
app.add_middleware(ConcurrencyLimitMiddleware)
app.add_middleware(TraceIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["x-tracechild", "x-request-id"],
)


# ── Error envelopes ──────────────────────────────────────────


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "")


@app.exception_handler(QuizError)
async def quiz_error_handler(request: Request, exc: QuizError):
    logger.warning(format_error(exc.code, exc.message))
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.code, exc.message, _trace_id(request)),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = "; ".join(
        f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}" for e in errors[:3]
    )
    logger.warning(format_error(ErrorCode.VALIDATION_ERROR, detail))
    return JSONResponse(
        status_code=400,
        content=error_envelope(ErrorCode.VALIDATION_ERROR, f"Bad request. {detail}", _trace_id(request)),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(format_error(ErrorCode.INTERNAL_ERROR, type(exc).__name__))
    return JSONResponse(
        status_code=500,
        content=error_envelope(ErrorCode.INTERNAL_ERROR, "Internal server error", _trace_id(request)),
    )


# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.events import router as events_router  # noqa: E402
from api.answers import router as answers_router  # noqa: E402
from api.results import router as results_router  # noqa: E402
from api.opinion import router as opinion_router  # noqa: E402

app.include_router(health_router)
app.include_router(events_router)
app.include_router(answers_router)
app.include_router(results_router)
app.include_router(opinion_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
