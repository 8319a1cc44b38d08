"""Infrastructure adapters (job persistence)."""

from .job_store import InMemoryJobStore, RedisJobStore

__all__ = ["InMemoryJobStore", "RedisJobStore"]
