from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from typing import Callable # For ASGIApp type hint
import os

from fhir_export.core.config import settings
from fhir_export.core.dependencies import get_export_configuration, get_job_store
from fhir_export.core.exceptions import FhirException, IssueSeverity, IssueType, OperationOutcomeIssue
from fhir_export.api.v1.endpoints import export as export_endpoints
from fhir_export.api import health as health_router
from fhir_export.domains.export.validation import FHIR_JSON_CONTENT_TYPE
from fhir_export.infrastructure.job_store import RedisJobStore

logging.basicConfig(level=os.getenv("LOG_LEVEL", settings.LOG_LEVEL), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Logs method, path and final status of every HTTP request."""

    def __init__(self, app: Callable):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status_holder = {}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        await self.app(scope, receive, send_wrapper)
        # Query strings are left out: they carry destination connection strings.
        logger.info(f"{scope.get('method')} {scope.get('path')} -> {status_holder.get('status')}")


@asynccontextmanager
async def lifespan(app_instance: FastAPI):
    logger.info("Application startup sequence initiated...")
    get_export_configuration()
    job_store = get_job_store()
    if not await job_store.ping():
        logger.warning("Export job store is not reachable at startup; status polls will fail until it recovers")

    try:
        yield
    finally:
        logger.info("Application shutdown sequence initiated...")
        if isinstance(job_store, RedisJobStore):
            await job_store.close()


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(FhirException)
async def fhir_exception_handler(request: Request, exc: FhirException):
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_operation_outcome(),
        media_type=FHIR_JSON_CONTENT_TYPE,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    outcome = FhirException(
        "An unexpected error occurred.",
        issues=[OperationOutcomeIssue(severity=IssueSeverity.FATAL, code=IssueType.EXCEPTION, diagnostics="An unexpected error occurred.")],
    )
    return JSONResponse(status_code=500, content=outcome.to_operation_outcome(), media_type=FHIR_JSON_CONTENT_TYPE)


app.include_router(health_router.router, tags=["Health Checks"])
app.include_router(export_endpoints.router, tags=["Bulk Export"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
