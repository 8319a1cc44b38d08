"""Health check endpoint reporting job store reachability."""

import logging
import time
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from fhir_export.core.config import settings
from fhir_export.core.dependencies import get_job_store
from fhir_export.domains.export.repositories import JobStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(job_store: JobStore = Depends(get_job_store)) -> JSONResponse:
    start_time = time.time()
    store_reachable = await job_store.ping()
    response_time_ms = (time.time() - start_time) * 1000

    status_report: Dict[str, Any] = {
        "status": "healthy" if store_reachable else "degraded",
        "service": settings.APP_NAME,
        "job_store": settings.JOB_STORE_BACKEND,
        "job_store_reachable": store_reachable,
        "response_time_ms": round(response_time_ms, 2),
    }
    if not store_reachable:
        logger.warning(f"Health check: job store not reachable: {status_report}")
        return JSONResponse(content=status_report, status_code=503)

    return JSONResponse(content=status_report)
