"""Result store: per-answer result rows plus a running summary per execution.

An *execution* is one attendee's quiz run.  Each answered question appends a
``Result`` row; the execution's ``ResultSummary.total_score`` is incremented
atomically so concurrent answers never lose points.

Two backends share the abstract interface: in-memory for single-worker
deployments and tests, Redis for multi-worker deployments.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from errors.exceptions import StorageError
from models.result import Result, ResultSummary

logger = logging.getLogger(__name__)


# ── Abstract Interface ───────────────────────────────────────


class ResultStore(ABC):
    """Abstract result store: implement the primitives for each backend.

    Public methods translate backend failures into :class:`StorageError`,
    except the summary increment, which is logged and swallowed so that a
    scored answer is never reported as failed once its row is written.
    """

    async def add_result(
        self,
        execution_id: str,
        event_name: str,
        question_id: str,
        answer: str,
        trace_id: str,
        score: int,
    ) -> Result:
        result = Result(
            execution_id=execution_id,
            event_name=event_name,
            question_id=question_id,
            answer=answer,
            trace_id=trace_id,
            score=score,
        )
        try:
            await self._append_result(result)
        except Exception as exc:
            logger.error("Failed to store result for execution %s: %s", execution_id, exc)
            raise StorageError("Error saving result") from exc

        try:
            await self._increment_summary(execution_id, event_name, score)
        except Exception:
            logger.exception("Failed to update summary for execution %s", execution_id)
        return result

    async def get_execution_results(self, execution_id: str) -> list[Result]:
        """All result rows for one execution, in insertion order."""
        try:
            return await self._load_results(execution_id)
        except Exception as exc:
            logger.error("Failed to read results for execution %s: %s", execution_id, exc)
            raise StorageError() from exc

    async def get_summary(self, execution_id: str) -> ResultSummary | None:
        try:
            return await self._load_summary(execution_id)
        except Exception as exc:
            logger.error("Failed to read summary for execution %s: %s", execution_id, exc)
            raise StorageError() from exc

    async def get_all_results_for_event(self, event_name: str) -> list[ResultSummary]:
        """Every execution summary for an event, highest total first."""
        try:
            summaries = await self._load_event_summaries(event_name)
        except Exception as exc:
            logger.error("Failed to read results for event %s: %s", event_name, exc)
            raise StorageError() from exc
        return sorted(summaries, key=lambda s: s.total_score, reverse=True)

    async def close(self) -> None:
        """Release backend resources."""

    # -- backend primitives --------------------------------------------------

    @abstractmethod
    async def _append_result(self, result: Result) -> None:
        ...

    @abstractmethod
    async def _increment_summary(self, execution_id: str, event_name: str, score: int) -> None:
        """Atomically add *score* to the summary, creating it at zero if absent."""
        ...

    @abstractmethod
    async def _load_results(self, execution_id: str) -> list[Result]:
        ...

    @abstractmethod
    async def _load_summary(self, execution_id: str) -> ResultSummary | None:
        ...

    @abstractmethod
    async def _load_event_summaries(self, event_name: str) -> list[ResultSummary]:
        ...


# ── In-Memory Implementation ────────────────────────────────


class InMemoryResultStore(ResultStore):
    """Single table keyed by execution id, holding both row types.

    The summary read-modify-write contains no ``await``, so it runs to
    completion on the event loop without interleaving; keep it that way.
    """

    def __init__(self) -> None:
        self._table: dict[str, list[Result | ResultSummary]] = {}

    async def _append_result(self, result: Result) -> None:
        self._table.setdefault(result.execution_id, []).append(result)

    async def _increment_summary(self, execution_id: str, event_name: str, score: int) -> None:
        rows = self._table.setdefault(execution_id, [])
        for i, row in enumerate(rows):
            if isinstance(row, ResultSummary):
                rows[i] = row.model_copy(update={"total_score": row.total_score + score})
                return
        rows.append(ResultSummary(
            execution_id=execution_id,
            event_name=event_name,
            total_score=score,
        ))

    async def _load_results(self, execution_id: str) -> list[Result]:
        return [r for r in self._table.get(execution_id, []) if isinstance(r, Result)]

    async def _load_summary(self, execution_id: str) -> ResultSummary | None:
        for row in self._table.get(execution_id, []):
            if isinstance(row, ResultSummary):
                return row
        return None

    async def _load_event_summaries(self, event_name: str) -> list[ResultSummary]:
        return [
            row
            for rows in self._table.values()
            for row in rows
            if isinstance(row, ResultSummary) and row.event_name == event_name
        ]

    @property
    def size(self) -> int:
        """Number of executions with at least one row."""
        return len(self._table)


# ── Redis Implementation ─────────────────────────────────────


class RedisResultStore(ResultStore):
    """Redis-backed store for multi-worker deployments.

    Keys:
        ``results:<execution_id>``      list of Result rows as JSON
        ``summary:<execution_id>``      hash {event_name, total_score}
        ``event:<event_name>:executions`` set of execution ids
    """

    def __init__(self, redis_url: str = "", client=None):
        if client is None:
            import redis.asyncio as aioredis

            client = aioredis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=10,
                socket_timeout=10,
            )
        self._redis = client

    @staticmethod
    def _results_key(execution_id: str) -> str:
        return f"results:{execution_id}"

    @staticmethod
    def _summary_key(execution_id: str) -> str:
        return f"summary:{execution_id}"

    @staticmethod
    def _event_key(event_name: str) -> str:
        return f"event:{event_name}:executions"

    async def _append_result(self, result: Result) -> None:
        await self._redis.rpush(
            self._results_key(result.execution_id),
            result.model_dump_json(by_alias=True),
        )

    async def _increment_summary(self, execution_id: str, event_name: str, score: int) -> None:
        key = self._summary_key(execution_id)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.hsetnx(key, "event_name", event_name)
            pipe.hincrby(key, "total_score", score)
            pipe.sadd(self._event_key(event_name), execution_id)
            await pipe.execute()

    async def _load_results(self, execution_id: str) -> list[Result]:
        rows = await self._redis.lrange(self._results_key(execution_id), 0, -1)
        return [Result.model_validate_json(row) for row in rows]

    async def _load_summary(self, execution_id: str) -> ResultSummary | None:
        data = await self._redis.hgetall(self._summary_key(execution_id))
        return self._summary_from_hash(execution_id, data)

    async def _load_event_summaries(self, event_name: str) -> list[ResultSummary]:
        execution_ids = sorted(await self._redis.smembers(self._event_key(event_name)))
        summaries = []
        for execution_id in execution_ids:
            summary = await self._load_summary(execution_id)
            if summary is not None:
                summaries.append(summary)
        return summaries

    @staticmethod
    def _summary_from_hash(execution_id: str, data: dict) -> ResultSummary | None:
        if not data:
            return None
        return ResultSummary(
            execution_id=execution_id,
            event_name=data.get("event_name", ""),
            total_score=int(data.get("total_score", 0)),
        )

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        try:
            return await self._redis.ping()
        except Exception:
            return False


# ── Module-level Singleton ───────────────────────────────────

_store: ResultStore | None = None


def get_result_store() -> ResultStore:
    """Get the singleton result store instance."""
    global _store
    if _store is None:
        from config.settings import get_settings

        settings = get_settings()
        if settings.result_store_type == "redis" and settings.redis_url:
            _store = RedisResultStore(redis_url=settings.redis_url)
            logger.info("Initialized RedisResultStore")
        else:
            _store = InMemoryResultStore()
            logger.info("Initialized InMemoryResultStore")
    return _store
