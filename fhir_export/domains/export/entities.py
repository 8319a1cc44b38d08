"""Export domain entities for bulk export jobs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class ExportJobStatus(str, Enum):
    """Export job lifecycle status."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExportJobStatus.COMPLETED, ExportJobStatus.FAILED)


@dataclass(frozen=True)
class ValidatedExportRequest:
    """An export request that passed every admissibility check."""
    request_uri: str
    destination_type: str
    destination_connection_string: str


@dataclass
class ExportJobRecord:
    """Persisted unit of work for one export job."""
    request_uri: str
    destination_type: str
    destination_connection_string: str
    id: str = field(default_factory=lambda: uuid4().hex)
    status: ExportJobStatus = ExportJobStatus.RUNNING
    result: Optional[Dict[str, Any]] = None
    queued_time: datetime = field(default_factory=_utcnow)
    completed_time: Optional[datetime] = None
    error_message: Optional[str] = None

    def can_transition_to(self, next_status: ExportJobStatus) -> bool:
        """A job never leaves a terminal status."""
        if self.status.is_terminal:
            return next_status == self.status
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "request_uri": self.request_uri,
            "destination_type": self.destination_type,
            "destination_connection_string": self.destination_connection_string,
            "status": self.status.value,
            "result": self.result,
            "queued_time": self.queued_time.isoformat(),
            "completed_time": self.completed_time.isoformat() if self.completed_time else None,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportJobRecord":
        completed_time = data.get("completed_time")
        return cls(
            id=data["id"],
            request_uri=data["request_uri"],
            destination_type=data["destination_type"],
            destination_connection_string=data["destination_connection_string"],
            status=ExportJobStatus(data["status"]),
            result=data.get("result"),
            queued_time=datetime.fromisoformat(data["queued_time"]),
            completed_time=datetime.fromisoformat(completed_time) if completed_time else None,
            error_message=data.get("error_message"),
        )


@dataclass(frozen=True)
class CreateExportResponse:
    job_created: bool
    id: str


@dataclass(frozen=True)
class GetExportResponse:
    """
    Status answer for one export job.

    A failed job is still reported as not completed (polled as 202); failed
    and error_message let callers tell it apart from a running one.
    """
    job_exists: bool
    completed: bool = False
    result: Optional[Dict[str, Any]] = None
    failed: bool = False
    error_message: Optional[str] = None
