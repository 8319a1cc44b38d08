"""In-memory and Redis adapters for the export JobStore contract."""
import asyncio
import copy
import json
import logging
from typing import Dict, Optional

from redis.asyncio import Redis as AsyncRedis
from redis.exceptions import RedisError

from fhir_export.core.exceptions import ServiceUnavailableError
from fhir_export.domains.export.entities import ExportJobRecord
from fhir_export.domains.export.repositories import JobStore, UpsertOutcome

logger = logging.getLogger(__name__)


class InMemoryJobStore(JobStore):
    """Process-local job store guarded by a single asyncio lock."""

    def __init__(self) -> None:
        self._records: Dict[str, ExportJobRecord] = {}
        self._lock = asyncio.Lock()

    async def upsert(self, record: ExportJobRecord) -> UpsertOutcome:
        async with self._lock:
            existing = self._records.get(record.id)
            if existing is None:
                self._records[record.id] = _copy(record)
                return UpsertOutcome.CREATED
            if not existing.can_transition_to(record.status):
                logger.warning(
                    f"Refusing transition of export job {record.id} from {existing.status.value} to {record.status.value}"
                )
                return UpsertOutcome.CONFLICT
            self._records[record.id] = _copy(record)
            return UpsertOutcome.UPDATED

    async def get(self, job_id: str) -> Optional[ExportJobRecord]:
        async with self._lock:
            record = self._records.get(job_id)
            return _copy(record) if record is not None else None

    async def ping(self) -> bool:
        return True


def _copy(record: ExportJobRecord) -> ExportJobRecord:
    # Callers never share a mutable record with the store.
    return copy.deepcopy(record)


class RedisJobStore(JobStore):
    """Job store backed by Redis; one JSON document per job key."""

    def __init__(self, redis: AsyncRedis, key_prefix: str = "export_job", ttl_seconds: int = 0):
        self.redis = redis
        self.key_prefix = key_prefix
        self.ttl_seconds = ttl_seconds

    def _key(self, job_id: str) -> str:
        return f"{self.key_prefix}:{job_id}"

    async def upsert(self, record: ExportJobRecord) -> UpsertOutcome:
        key = self._key(record.id)
        payload = json.dumps(record.to_dict())
        expiry = self.ttl_seconds or None
        try:
            # SET NX makes insert-with-fresh-id atomic across concurrent creators.
            if await self.redis.set(key, payload, nx=True, ex=expiry):
                return UpsertOutcome.CREATED

            cached = await self.redis.get(key)
            if cached is not None:
                existing = ExportJobRecord.from_dict(json.loads(cached))
                if not existing.can_transition_to(record.status):
                    logger.warning(
                        f"Refusing transition of export job {record.id} from {existing.status.value} to {record.status.value}"
                    )
                    return UpsertOutcome.CONFLICT

            if await self.redis.set(key, payload, xx=True, ex=expiry):
                return UpsertOutcome.UPDATED
            logger.error(f"Export job {record.id} disappeared while being replaced")
            return UpsertOutcome.ERROR
        except RedisError as e:
            logger.error(f"Failed to persist export job {record.id} in Redis: {e}")
            return UpsertOutcome.ERROR

    async def get(self, job_id: str) -> Optional[ExportJobRecord]:
        try:
            cached = await self.redis.get(self._key(job_id))
        except RedisError as e:
            logger.error(f"Failed to read export job {job_id} from Redis: {e}")
            raise ServiceUnavailableError() from e
        if cached is None:
            return None
        return ExportJobRecord.from_dict(json.loads(cached))

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.redis.aclose()
