# tests/infrastructure/test_job_store.py
"""
Unit tests for the job store adapters in fhir_export.infrastructure.job_store.
"""
import asyncio
import json

import pytest
from unittest.mock import MagicMock, AsyncMock
from redis.exceptions import ConnectionError as RedisConnectionError

from fhir_export.core.exceptions import ServiceUnavailableError
from fhir_export.domains.export.entities import ExportJobRecord, ExportJobStatus
from fhir_export.domains.export.repositories import UpsertOutcome
from fhir_export.infrastructure.job_store import InMemoryJobStore, RedisJobStore


def make_record(**overrides) -> ExportJobRecord:
    values = {
        "request_uri": "https://localhost/$export",
        "destination_type": "AzureBlockBlob",
        "destination_connection_string": "conn",
    }
    values.update(overrides)
    return ExportJobRecord(**values)


@pytest.fixture
def mock_redis():
    """Mocks the redis.asyncio client."""
    mock = MagicMock()
    mock.set = AsyncMock(return_value=True)
    mock.get = AsyncMock(return_value=None)
    mock.ping = AsyncMock(return_value=True)
    mock.aclose = AsyncMock()
    return mock


# --- InMemoryJobStore ---

@pytest.mark.asyncio
async def test_in_memory_store_creates_and_reads_back():
    store = InMemoryJobStore()
    record = make_record()

    assert await store.upsert(record) == UpsertOutcome.CREATED
    stored = await store.get(record.id)

    assert stored is not None
    assert stored.id == record.id
    assert stored.status == ExportJobStatus.RUNNING
    assert stored.destination_connection_string == "conn"


@pytest.mark.asyncio
async def test_in_memory_store_returns_none_for_unknown_id():
    store = InMemoryJobStore()
    assert await store.get("unknown") is None


@pytest.mark.asyncio
async def test_in_memory_store_does_not_share_records_with_callers():
    store = InMemoryJobStore()
    record = make_record()
    await store.upsert(record)

    record.status = ExportJobStatus.COMPLETED
    stored = await store.get(record.id)

    assert stored.status == ExportJobStatus.RUNNING


@pytest.mark.asyncio
async def test_in_memory_store_accepts_completion_then_refuses_regression():
    store = InMemoryJobStore()
    record = make_record()
    await store.upsert(record)

    record.status = ExportJobStatus.COMPLETED
    record.result = {"output": []}
    assert await store.upsert(record) == UpsertOutcome.UPDATED

    record.status = ExportJobStatus.RUNNING
    assert await store.upsert(record) == UpsertOutcome.CONFLICT

    stored = await store.get(record.id)
    assert stored.status == ExportJobStatus.COMPLETED
    assert stored.result == {"output": []}


@pytest.mark.asyncio
async def test_in_memory_store_handles_concurrent_creates():
    store = InMemoryJobStore()
    records = [make_record() for _ in range(20)]

    outcomes = await asyncio.gather(*(store.upsert(record) for record in records))

    assert all(outcome == UpsertOutcome.CREATED for outcome in outcomes)
    for record in records:
        assert await store.get(record.id) is not None


# --- RedisJobStore ---

@pytest.mark.asyncio
async def test_redis_store_inserts_with_set_nx(mock_redis):
    store = RedisJobStore(mock_redis, key_prefix="export_job")
    record = make_record()

    assert await store.upsert(record) == UpsertOutcome.CREATED

    mock_redis.set.assert_awaited_once()
    args, kwargs = mock_redis.set.await_args
    assert args[0] == f"export_job:{record.id}"
    assert json.loads(args[1])["status"] == "running"
    assert kwargs["nx"] is True
    assert kwargs["ex"] is None


@pytest.mark.asyncio
async def test_redis_store_applies_ttl_when_configured(mock_redis):
    store = RedisJobStore(mock_redis, ttl_seconds=3600)

    await store.upsert(make_record())

    assert mock_redis.set.await_args.kwargs["ex"] == 3600


@pytest.mark.asyncio
async def test_redis_store_replaces_existing_running_job(mock_redis):
    record = make_record()
    mock_redis.set.side_effect = [None, True]
    mock_redis.get.return_value = json.dumps(record.to_dict())
    store = RedisJobStore(mock_redis)

    record.status = ExportJobStatus.COMPLETED
    assert await store.upsert(record) == UpsertOutcome.UPDATED
    assert mock_redis.set.await_args_list[1].kwargs["xx"] is True


@pytest.mark.asyncio
async def test_redis_store_refuses_regression_of_finished_job(mock_redis):
    finished = make_record(status=ExportJobStatus.FAILED, error_message="boom")
    mock_redis.set.return_value = None
    mock_redis.get.return_value = json.dumps(finished.to_dict())
    store = RedisJobStore(mock_redis)

    regressed = make_record(id=finished.id)

    assert await store.upsert(regressed) == UpsertOutcome.CONFLICT
    assert mock_redis.set.await_count == 1


@pytest.mark.asyncio
async def test_redis_store_reports_error_when_redis_fails(mock_redis):
    mock_redis.set.side_effect = RedisConnectionError("connection refused")
    store = RedisJobStore(mock_redis)

    assert await store.upsert(make_record()) == UpsertOutcome.ERROR


@pytest.mark.asyncio
async def test_redis_store_reads_record(mock_redis):
    record = make_record(status=ExportJobStatus.COMPLETED, result={"output": []})
    mock_redis.get.return_value = json.dumps(record.to_dict())
    store = RedisJobStore(mock_redis, key_prefix="jobs")

    stored = await store.get(record.id)

    mock_redis.get.assert_awaited_once_with(f"jobs:{record.id}")
    assert stored.id == record.id
    assert stored.status == ExportJobStatus.COMPLETED
    assert stored.result == {"output": []}
    assert stored.queued_time == record.queued_time


@pytest.mark.asyncio
async def test_redis_store_returns_none_for_unknown_id(mock_redis):
    store = RedisJobStore(mock_redis)
    assert await store.get("unknown") is None


@pytest.mark.asyncio
async def test_redis_store_read_outage_is_service_unavailable(mock_redis):
    mock_redis.get.side_effect = RedisConnectionError("connection refused")
    store = RedisJobStore(mock_redis)

    with pytest.raises(ServiceUnavailableError):
        await store.get("any-job")


@pytest.mark.asyncio
async def test_redis_store_ping(mock_redis):
    store = RedisJobStore(mock_redis)
    assert await store.ping() is True

    mock_redis.ping.side_effect = RedisConnectionError("down")
    assert await store.ping() is False


@pytest.mark.asyncio
async def test_redis_store_close(mock_redis):
    store = RedisJobStore(mock_redis)
    await store.close()
    mock_redis.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_in_memory_store_result_is_not_shared_with_readers():
    store = InMemoryJobStore()
    record = make_record(status=ExportJobStatus.COMPLETED, result={"output": []})
    await store.upsert(record)

    first_read = await store.get(record.id)
    first_read.result["output"].append("changed")
    record.result["output"].append("changed")

    stored = await store.get(record.id)
    assert stored.result == {"output": []}
