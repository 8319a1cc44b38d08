"""
Admissibility checks for export requests.

Everything here runs on already-parsed request metadata and the process-wide
ExportConfiguration. No I/O happens in this module, so the checks are
synchronous and deterministic; the first failing check raises
RequestNotValidError with a message naming that check.
"""

from starlette.datastructures import Headers, QueryParams

from fhir_export.core.config import ExportConfiguration
from fhir_export.core.exceptions import RequestNotValidError
from fhir_export.domains.export.entities import ValidatedExportRequest

FHIR_JSON_CONTENT_TYPE = "application/fhir+json"
EXPORT_RESULT_CONTENT_TYPE = "application/json"
PREFER_RESPOND_ASYNC = "respond-async"

ACCEPT_HEADER_NAME = "Accept"
PREFER_HEADER_NAME = "Prefer"

DESTINATION_TYPE_PARAM = "destinationType"
DESTINATION_CONNECTION_STRING_PARAM = "destinationConnectionString"

EXPORT_OPERATION_NAME = "export"

# Scoped export is only offered for these resource types.
RESOURCE_TYPE_EXPORT_TYPE = "Patient"
INSTANCE_EXPORT_TYPE = "Group"


def _require_single_header(headers: Headers, name: str, expected: str) -> None:
    values = headers.getlist(name)
    if len(values) != 1 or values[0] != expected:
        raise RequestNotValidError(f"The '{name}' header must be present exactly once with the value '{expected}'.")


def validate_headers(headers: Headers) -> None:
    """Accept must be the FHIR JSON media type and Prefer must be exactly respond-async."""
    _require_single_header(headers, ACCEPT_HEADER_NAME, FHIR_JSON_CONTENT_TYPE)
    _require_single_header(headers, PREFER_HEADER_NAME, PREFER_RESPOND_ASYNC)


def validate_export_request(
    headers: Headers,
    query_params: QueryParams,
    request_uri: str,
    config: ExportConfiguration,
) -> ValidatedExportRequest:
    """
    Run the export admissibility checks in order.

    Args:
        headers: Inbound request headers
        query_params: Inbound query parameters
        request_uri: Full URI of the inbound request
        config: Process-wide export configuration

    Returns:
        The validated request, ready for the orchestrator

    Raises:
        RequestNotValidError: On the first failed check
    """
    if not request_uri:
        raise RequestNotValidError("The request URI is required.")

    validate_headers(headers)

    destination_type = query_params.get(DESTINATION_TYPE_PARAM) or ""
    connection_string = query_params.get(DESTINATION_CONNECTION_STRING_PARAM) or ""
    # Blank values count as missing; admitted values are kept exactly as sent.
    if not destination_type.strip() or not connection_string.strip():
        raise RequestNotValidError(
            f"The '{DESTINATION_TYPE_PARAM}' and '{DESTINATION_CONNECTION_STRING_PARAM}' "
            f"query parameters are both required."
        )

    if destination_type not in config.supported_destinations:
        raise RequestNotValidError(f"The destination type '{destination_type}' is not supported.")

    ensure_export_enabled(config)

    return ValidatedExportRequest(
        request_uri=request_uri,
        destination_type=destination_type,
        destination_connection_string=connection_string,
    )


def ensure_export_enabled(config: ExportConfiguration) -> None:
    if not config.enabled:
        raise RequestNotValidError(f"The requested \"{EXPORT_OPERATION_NAME}\" operation is not supported.")


def ensure_resource_type_scope(resource_type: str) -> None:
    """Export by resource type is only supported for Patient."""
    if resource_type != RESOURCE_TYPE_EXPORT_TYPE:
        raise RequestNotValidError(f"The resource type '{resource_type}' is not supported for this operation.")


def ensure_instance_scope(resource_type: str, resource_id: str) -> None:
    """Export by resource instance is only supported for Group, and needs an id."""
    if resource_type != INSTANCE_EXPORT_TYPE or not resource_id:
        raise RequestNotValidError(f"The resource type '{resource_type}' is not supported for this operation.")
