"""Bulk $export API endpoints: create an export job and poll its status."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response

from fhir_export.core.config import ExportConfiguration
from fhir_export.core.dependencies import get_export_configuration, get_export_orchestrator
from fhir_export.core.exceptions import (
    JobNotCreatedError,
    JobNotFoundError,
    OperationNotImplementedError,
    RequestNotValidError,
)
from fhir_export.domains.export.entities import ValidatedExportRequest
from fhir_export.domains.export.services import ExportOrchestrator
from fhir_export.domains.export.validation import (
    EXPORT_OPERATION_NAME,
    EXPORT_RESULT_CONTENT_TYPE,
    ensure_export_enabled,
    ensure_instance_scope,
    ensure_resource_type_scope,
    validate_export_request,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])

GET_EXPORT_STATUS_ROUTE = "get_export_status_by_id"


def validated_export_request(
    request: Request,
    config: ExportConfiguration = Depends(get_export_configuration),
) -> ValidatedExportRequest:
    """
    Validation stage of the export pipeline.

    Handlers that depend on this only ever see admitted requests; any failed
    check ends the request with a RequestNotValidError before the handler runs.
    """
    try:
        return validate_export_request(request.headers, request.query_params, str(request.url), config)
    except RequestNotValidError as e:
        logger.warning(f"Rejected export request to {request.url.path}: {e.message}")
        raise


def _check_if_export_is_enabled_and_respond(config: ExportConfiguration) -> Response:
    # Scoped export has no implementation yet; only the answer depends on the toggle.
    ensure_export_enabled(config)
    raise OperationNotImplementedError(f"The requested \"{EXPORT_OPERATION_NAME}\" operation is not implemented.")


# Registered before the scoped routes so "_operations/export/<id>" never reaches them.
@router.get("/_operations/export/{job_id}", name=GET_EXPORT_STATUS_ROUTE)
async def get_export_status_by_id(
    job_id: str,
    request: Request,
    orchestrator: ExportOrchestrator = Depends(get_export_orchestrator),
) -> Response:
    """
    Poll an export job.

    Returns 404 for unknown jobs, 202 while the job is running and 200 with
    the job result once it has completed.
    """
    result = await orchestrator.get_export_status(str(request.url), job_id)

    if not result.job_exists:
        raise JobNotFoundError(f"The requested job \"{job_id}\" was not found.")

    if result.completed:
        return JSONResponse(
            content=result.result,
            status_code=status.HTTP_200_OK,
            media_type=EXPORT_RESULT_CONTENT_TYPE,
        )

    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.get("/$export", status_code=status.HTTP_202_ACCEPTED)
async def export(
    request: Request,
    export_request: ValidatedExportRequest = Depends(validated_export_request),
    orchestrator: ExportOrchestrator = Depends(get_export_orchestrator),
) -> Response:
    """
    Start a system-level bulk export.

    Requires `Accept: application/fhir+json`, `Prefer: respond-async` and the
    `destinationType` / `destinationConnectionString` query parameters.
    """
    response = await orchestrator.create_export(
        export_request.request_uri,
        export_request.destination_type,
        export_request.destination_connection_string,
    )

    if not response.job_created:
        raise JobNotCreatedError("An unexpected error occurred while creating the export job.")

    location = str(request.url_for(GET_EXPORT_STATUS_ROUTE, job_id=response.id))
    return Response(status_code=status.HTTP_202_ACCEPTED, headers={"Content-Location": location})


@router.get("/{resource_type}/$export")
async def export_resource_type(
    resource_type: str,
    export_request: ValidatedExportRequest = Depends(validated_export_request),
    config: ExportConfiguration = Depends(get_export_configuration),
) -> Response:
    """Export scoped to a resource type; only Patient is accepted."""
    ensure_resource_type_scope(resource_type)
    return _check_if_export_is_enabled_and_respond(config)


@router.get("/{resource_type}/{resource_id}/$export")
async def export_resource_type_by_id(
    resource_type: str,
    resource_id: str,
    export_request: ValidatedExportRequest = Depends(validated_export_request),
    config: ExportConfiguration = Depends(get_export_configuration),
) -> Response:
    """Export scoped to one resource instance; only Group is accepted."""
    ensure_instance_scope(resource_type, resource_id)
    return _check_if_export_is_enabled_and_respond(config)
