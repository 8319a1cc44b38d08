"""
Module for managing and providing application dependencies.
Leverages FastAPI's dependency injection system; singletons are cached with lru_cache.
"""
from functools import lru_cache
import logging

from fastapi import Depends
from redis.asyncio import Redis as AsyncRedis

from fhir_export.core.config import settings, ExportConfiguration
from fhir_export.domains.export.repositories import JobStore
from fhir_export.domains.export.services import ExportOrchestrator
from fhir_export.infrastructure.job_store import InMemoryJobStore, RedisJobStore

logger = logging.getLogger(__name__)


@lru_cache()
def get_export_configuration() -> ExportConfiguration:
    """Export configuration, loaded once per process and never mutated."""
    config = settings.export_configuration
    logger.info(
        f"Export configuration loaded: enabled={config.enabled}, "
        f"destinations={sorted(config.supported_destinations)}"
    )
    return config


@lru_cache()
def get_job_store() -> JobStore:
    """Dependency provider for the export job store selected by JOB_STORE_BACKEND."""
    backend = settings.JOB_STORE_BACKEND.lower()
    if backend == "redis":
        redis = AsyncRedis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            password=settings.REDIS_PASSWORD,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            max_connections=20
        )
        logger.info(f"Using Redis export job store at {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}")
        return RedisJobStore(
            redis,
            key_prefix=settings.EXPORT_JOB_KEY_PREFIX,
            ttl_seconds=settings.EXPORT_JOB_TTL_SECONDS,
        )
    if backend != "memory":
        raise ValueError(f"Unknown JOB_STORE_BACKEND '{settings.JOB_STORE_BACKEND}'")
    logger.info("Using in-memory export job store")
    return InMemoryJobStore()


def get_export_orchestrator(
    job_store: JobStore = Depends(get_job_store),
    config: ExportConfiguration = Depends(get_export_configuration),
) -> ExportOrchestrator:
    """Dependency provider for the export orchestrator."""
    return ExportOrchestrator(job_store=job_store, config=config)
