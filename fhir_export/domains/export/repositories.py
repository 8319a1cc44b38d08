"""
Repository interface for export job records.

The orchestrator depends on this contract only; adapters live in
fhir_export.infrastructure.job_store. Uniqueness of job ids and atomicity of
each upsert are owned by the adapter.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

from .entities import ExportJobRecord


class UpsertOutcome(str, Enum):
    """Acknowledgement returned by JobStore.upsert."""
    CREATED = "created"
    UPDATED = "updated"
    CONFLICT = "conflict"
    ERROR = "error"


class JobStore(ABC):
    """
    Repository for export job records.

    Records are never deleted through this interface; retention is the
    backend's concern.
    """

    @abstractmethod
    async def upsert(self, record: ExportJobRecord) -> UpsertOutcome:
        """
        Insert a new job record or replace an existing one.

        Args:
            record: Job record to persist

        Returns:
            CREATED for a new id, UPDATED for a legal replacement,
            CONFLICT when the replacement would move a finished job back,
            ERROR when the backend failed to persist the record
        """
        pass

    @abstractmethod
    async def get(self, job_id: str) -> Optional[ExportJobRecord]:
        """
        Find a job record by id.

        Args:
            job_id: Job identifier

        Returns:
            Job record if found, None otherwise

        Raises:
            ServiceUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        pass
