"""Tests for services/result_store.py: result rows and atomic summaries."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from errors.exceptions import StorageError
from models.result import Result, ResultSummary
from services.result_store import InMemoryResultStore, RedisResultStore


async def _add(store, execution_id="exec-1", score=10, event_name="devopsdays_whenever", question_id="q-1"):
    return await store.add_result(
        execution_id=execution_id,
        event_name=event_name,
        question_id=question_id,
        answer="an answer",
        trace_id="trace-1",
        score=score,
    )


class TestInMemoryResultStore:
    @pytest.mark.asyncio
    async def test_add_and_get_results(self, result_store):
        row = await _add(result_store, score=7)

        results = await result_store.get_execution_results("exec-1")
        assert results == [row]
        assert results[0].type == "result"
        assert results[0].trace_id == "trace-1"

    @pytest.mark.asyncio
    async def test_first_answer_creates_summary(self, result_store):
        await _add(result_store, score=7)

        summary = await result_store.get_summary("exec-1")
        assert summary == ResultSummary(
            execution_id="exec-1", event_name="devopsdays_whenever", total_score=7,
        )

    @pytest.mark.asyncio
    async def test_summary_accumulates(self, result_store):
        await _add(result_store, score=7, question_id="q-1")
        await _add(result_store, score=3, question_id="q-2")

        summary = await result_store.get_summary("exec-1")
        assert summary.total_score == 10

    @pytest.mark.asyncio
    async def test_resubmission_appends(self, result_store):
        await _add(result_store, score=1)
        await _add(result_store, score=4)

        results = await result_store.get_execution_results("exec-1")
        assert [r.score for r in results] == [1, 4]

    @pytest.mark.asyncio
    async def test_concurrent_adds_never_lose_increments(self, result_store):
        await asyncio.gather(_add(result_store, score=10), _add(result_store, score=15))

        summary = await result_store.get_summary("exec-1")
        assert summary.total_score == 25

    @pytest.mark.asyncio
    async def test_many_concurrent_adds(self, result_store):
        await asyncio.gather(*(_add(result_store, score=i) for i in range(50)))

        assert (await result_store.get_summary("exec-1")).total_score == sum(range(50))
        assert len(await result_store.get_execution_results("exec-1")) == 50

    @pytest.mark.asyncio
    async def test_interleaved_adds_keep_every_increment(self, result_store):
        append = result_store._append_result

        async def slow_append(result):
            await asyncio.sleep(0)
            await append(result)
            await asyncio.sleep(0)

        with patch.object(result_store, "_append_result", slow_append):
            await asyncio.gather(*(_add(result_store, score=i) for i in range(1, 21)))

        assert (await result_store.get_summary("exec-1")).total_score == sum(range(1, 21))

    def test_no_per_execution_state_outside_table(self, result_store):
        assert vars(result_store).keys() == {"_table"}

    @pytest.mark.asyncio
    async def test_execution_results_only_result_rows(self, result_store):
        await _add(result_store, score=5)

        results = await result_store.get_execution_results("exec-1")
        assert all(isinstance(r, Result) and r.type == "result" for r in results)

    @pytest.mark.asyncio
    async def test_event_results_only_summary_rows_sorted(self, result_store):
        await _add(result_store, execution_id="a", score=5)
        await _add(result_store, execution_id="b", score=20)
        await _add(result_store, execution_id="b", score=1)
        await _add(result_store, execution_id="c", score=12)
        await _add(result_store, execution_id="other", score=99, event_name="kubecon_2024")

        summaries = await result_store.get_all_results_for_event("devopsdays_whenever")
        assert all(s.type == "summary" for s in summaries)
        assert [(s.execution_id, s.total_score) for s in summaries] == [("b", 21), ("c", 12), ("a", 5)]

    @pytest.mark.asyncio
    async def test_unknown_execution(self, result_store):
        assert await result_store.get_execution_results("nope") == []
        assert await result_store.get_summary("nope") is None

    @pytest.mark.asyncio
    async def test_append_failure_raises_storage_error(self, result_store):
        with patch.object(result_store, "_append_result", AsyncMock(side_effect=OSError("disk"))):
            with pytest.raises(StorageError):
                await _add(result_store)
        assert await result_store.get_summary("exec-1") is None

    @pytest.mark.asyncio
    async def test_summary_failure_logged_not_raised(self, result_store):
        with patch.object(result_store, "_increment_summary", AsyncMock(side_effect=OSError("disk"))):
            row = await _add(result_store, score=3)

        assert await result_store.get_execution_results("exec-1") == [row]
        assert await result_store.get_summary("exec-1") is None

    @pytest.mark.asyncio
    async def test_read_failure_raises_storage_error(self, result_store):
        with patch.object(result_store, "_load_event_summaries", AsyncMock(side_effect=OSError("x"))):
            with pytest.raises(StorageError):
                await result_store.get_all_results_for_event("devopsdays_whenever")


def test_result_serializes_with_table_key_name():
    row = Result(execution_id="e", event_name="ev", question_id="q", answer="a", score=1)
    data = row.model_dump(by_alias=True)
    assert data["quiz_run_id"] == "e"
    assert data["type"] == "result"
    assert Result.model_validate(data) == row


# ── Redis ────────────────────────────────────────────────────


class _FakePipeline:
    """Records queued commands; ``execute`` applies them to the fake."""

    def __init__(self, fake):
        self._fake = fake
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def hsetnx(self, key, field, value):
        self.commands.append(("hsetnx", key, field, value))

    def hincrby(self, key, field, amount):
        self.commands.append(("hincrby", key, field, amount))

    def sadd(self, key, member):
        self.commands.append(("sadd", key, member))

    async def execute(self):
        for name, *args in self.commands:
            getattr(self._fake, f"_apply_{name}")(*args)
        self._fake.transactions.append(self.commands)


class _FakeRedis:
    def __init__(self):
        self.lists = {}
        self.hashes = {}
        self.sets = {}
        self.transactions = []
        self.aclose = AsyncMock()

    def pipeline(self, transaction=True):
        assert transaction is True
        return _FakePipeline(self)

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def lrange(self, key, start, end):
        return list(self.lists.get(key, []))

    async def hgetall(self, key):
        return {k: str(v) for k, v in self.hashes.get(key, {}).items()}

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def ping(self):
        return True

    def _apply_hsetnx(self, key, field, value):
        self.hashes.setdefault(key, {}).setdefault(field, value)

    def _apply_hincrby(self, key, field, amount):
        h = self.hashes.setdefault(key, {})
        h[field] = int(h.get(field, 0)) + amount

    def _apply_sadd(self, key, member):
        self.sets.setdefault(key, set()).add(member)


class TestRedisResultStore:
    @pytest.fixture
    def fake(self):
        return _FakeRedis()

    @pytest.fixture
    def store(self, fake):
        return RedisResultStore(client=fake)

    @pytest.mark.asyncio
    async def test_result_rows_pushed_as_json(self, store, fake):
        await _add(store, score=4)

        raw = fake.lists["results:exec-1"]
        assert len(raw) == 1
        assert '"quiz_run_id":"exec-1"' in raw[0]
        assert (await store.get_execution_results("exec-1"))[0].score == 4

    @pytest.mark.asyncio
    async def test_summary_uses_single_transaction(self, store, fake):
        await _add(store, score=4)

        assert fake.transactions == [[
            ("hsetnx", "summary:exec-1", "event_name", "devopsdays_whenever"),
            ("hincrby", "summary:exec-1", "total_score", 4),
            ("sadd", "event:devopsdays_whenever:executions", "exec-1"),
        ]]

    @pytest.mark.asyncio
    async def test_concurrent_adds_sum(self, store):
        await asyncio.gather(_add(store, score=10), _add(store, score=15))
        assert (await store.get_summary("exec-1")).total_score == 25

    @pytest.mark.asyncio
    async def test_event_results_sorted(self, store):
        await _add(store, execution_id="a", score=3)
        await _add(store, execution_id="b", score=9)
        await _add(store, execution_id="x", score=50, event_name="kubecon_2024")

        summaries = await store.get_all_results_for_event("devopsdays_whenever")
        assert [(s.execution_id, s.total_score) for s in summaries] == [("b", 9), ("a", 3)]

    @pytest.mark.asyncio
    async def test_missing_summary(self, store):
        assert await store.get_summary("nope") is None

    @pytest.mark.asyncio
    async def test_rpush_failure_raises_storage_error(self, store, fake):
        fake.rpush = AsyncMock(side_effect=ConnectionError("redis down"))
        with pytest.raises(StorageError):
            await _add(store)

    @pytest.mark.asyncio
    async def test_ping_failure_returns_false(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError())
        assert await RedisResultStore(client=client).ping() is False

    @pytest.mark.asyncio
    async def test_close(self, store, fake):
        await store.close()
        fake.aclose.assert_awaited_once()
