"""Gunicorn configuration for the Observaquiz service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Answer evaluation makes 2 + N sequential-ish LLM calls and is capped at
REQUEST_TIMEOUT_SECONDS (30s by default); every other endpoint is fast.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# Async ASGI workers: one per core.  LLM concurrency and answer-submission
# limits (LLM_MAX_CONCURRENCY, MAX_CONCURRENT_ANSWERS) apply per worker.
# Use RESULT_STORE_TYPE=redis with more than one worker so every worker
# sees the same results.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Must exceed the evaluation timeout so the app, not gunicorn, answers 504.

timeout = 60
graceful_timeout = 35   # let in-flight evaluations finish
keepalive = 5

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 5000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"                     # stdout
errorlog = "-"                      # stderr
loglevel = os.getenv("LOG_LEVEL", "info")
access_log_format = (
    '%(h)s %(t)s "%(r)s" %(s)s %(b)s %(D)sμs event=%({event-name}i)s'
)

# ─── Process naming ─────────────────────────────────────────────

proc_name = "observaquiz-bff"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting Observaquiz: workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
