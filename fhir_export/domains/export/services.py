"""Export domain services for creating and polling bulk export jobs."""

import logging

from fhir_export.core.config import ExportConfiguration

from .entities import (
    CreateExportResponse,
    ExportJobRecord,
    ExportJobStatus,
    GetExportResponse,
)
from .repositories import JobStore, UpsertOutcome
from .validation import ensure_export_enabled

logger = logging.getLogger(__name__)


class ExportOrchestrator:
    """
    Turns admitted export requests into job records and job records into
    status answers.

    Status transitions belong to the execution engine; nothing here ever
    changes the status of an existing job.
    """

    def __init__(self, job_store: JobStore, config: ExportConfiguration):
        self.job_store = job_store
        self.config = config

    async def create_export(
        self,
        request_uri: str,
        destination_type: str,
        destination_connection_string: str,
    ) -> CreateExportResponse:
        """
        Persist a new running export job.

        Args:
            request_uri: URI of the originating export request
            destination_type: Supported destination type identifier
            destination_connection_string: Opaque destination settings

        Returns:
            CreateExportResponse with job_created set only when the store
            acknowledged the insert

        Raises:
            RequestNotValidError: If export is disabled
        """
        ensure_export_enabled(self.config)

        record = ExportJobRecord(
            request_uri=request_uri,
            destination_type=destination_type,
            destination_connection_string=destination_connection_string,
        )
        outcome = await self.job_store.upsert(record)

        if outcome != UpsertOutcome.CREATED:
            logger.error(f"Export job {record.id} was not created, store answered '{outcome.value}'")
            return CreateExportResponse(job_created=False, id=record.id)

        logger.info(f"Created export job {record.id} for destination type {destination_type}")
        return CreateExportResponse(job_created=True, id=record.id)

    async def get_export_status(self, request_uri: str, job_id: str) -> GetExportResponse:
        """
        Look up an export job; polling never mutates the job.

        A failed job keeps answering completed=False, since a terminal job can
        never move to completed. The failure is reported through failed and
        error_message instead.
        """
        record = await self.job_store.get(job_id)

        if record is None:
            logger.debug(f"Export job {job_id} not found (requested via {request_uri})")
            return GetExportResponse(job_exists=False)

        if record.status == ExportJobStatus.COMPLETED:
            return GetExportResponse(job_exists=True, completed=True, result=record.result or {})

        if record.status == ExportJobStatus.FAILED:
            # Failed is terminal; the job stays "not completed" for pollers.
            logger.warning(f"Export job {job_id} polled after failing: {record.error_message}")
            return GetExportResponse(
                job_exists=True, completed=False, failed=True, error_message=record.error_message
            )

        return GetExportResponse(job_exists=True, completed=False)
