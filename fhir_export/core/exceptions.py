"""
Error kinds raised by the export operation.

Each exception carries the HTTP status it maps to and a list of
OperationOutcome issues; `fhir_export.main` renders them with a single
exception handler.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from fastapi import status


class IssueSeverity:
    """OperationOutcome issue severities used by this service."""
    ERROR = "error"
    FATAL = "fatal"


class IssueType:
    """OperationOutcome issue codes used by this service."""
    INVALID = "invalid"
    NOT_SUPPORTED = "not-supported"
    NOT_FOUND = "not-found"
    EXCEPTION = "exception"
    PROCESSING = "processing"


@dataclass
class OperationOutcomeIssue:
    severity: str
    code: str
    diagnostics: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


class FhirException(Exception):
    """Base class for errors surfaced to clients as an OperationOutcome."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    issue_code: str = IssueType.EXCEPTION
    severity: str = IssueSeverity.ERROR

    def __init__(self, message: str, issues: Optional[List[OperationOutcomeIssue]] = None):
        super().__init__(message)
        self.message = message
        self.issues: List[OperationOutcomeIssue] = list(issues) if issues else [
            OperationOutcomeIssue(severity=self.severity, code=self.issue_code, diagnostics=message)
        ]

    def to_operation_outcome(self) -> Dict[str, Any]:
        return {
            "resourceType": "OperationOutcome",
            "issue": [issue.to_dict() for issue in self.issues],
        }


class RequestNotValidError(FhirException):
    """The request is not admissible (headers, parameters or scope)."""
    status_code = status.HTTP_400_BAD_REQUEST
    issue_code = IssueType.INVALID


class OperationNotImplementedError(FhirException):
    status_code = status.HTTP_501_NOT_IMPLEMENTED
    issue_code = IssueType.NOT_SUPPORTED


class JobNotCreatedError(FhirException):
    """The job store did not acknowledge the new job record."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    issue_code = IssueType.EXCEPTION


class JobNotFoundError(FhirException):
    status_code = status.HTTP_404_NOT_FOUND
    issue_code = IssueType.NOT_FOUND


class ServiceUnavailableError(FhirException):
    """A backing service (the job store) could not be reached."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    issue_code = IssueType.PROCESSING

    def __init__(self, message: str = "The server is currently unable to receive requests. Please retry later."):
        super().__init__(message)
