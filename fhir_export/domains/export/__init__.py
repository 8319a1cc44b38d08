"""Export domain for the bulk $export operation."""

from .entities import (
    CreateExportResponse,
    ExportJobRecord,
    ExportJobStatus,
    GetExportResponse,
    ValidatedExportRequest
)

from .repositories import JobStore, UpsertOutcome

from .services import ExportOrchestrator

__all__ = [
    # Entities
    "CreateExportResponse",
    "ExportJobRecord",
    "ExportJobStatus",
    "GetExportResponse",
    "ValidatedExportRequest",

    # Repositories
    "JobStore",
    "UpsertOutcome",

    # Services
    "ExportOrchestrator"
]
