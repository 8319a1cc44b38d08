"""
Global fixtures for the bulk export test suite.
"""
import pytest
from fastapi.testclient import TestClient
from typing import Dict

from fhir_export.core.config import ExportConfiguration
from fhir_export.core.dependencies import get_export_configuration, get_job_store
from fhir_export.domains.export.validation import FHIR_JSON_CONTENT_TYPE, PREFER_RESPOND_ASYNC
from fhir_export.infrastructure.job_store import InMemoryJobStore
from fhir_export.main import app

SUPPORTED_DESTINATION_TYPE = "AzureBlockBlob"
CONNECTION_STRING = "connectionString"


@pytest.fixture
def export_config() -> ExportConfiguration:
    """Export enabled with a single supported destination type."""
    return ExportConfiguration(enabled=True, supported_destinations=frozenset({SUPPORTED_DESTINATION_TYPE}))


@pytest.fixture
def disabled_export_config() -> ExportConfiguration:
    return ExportConfiguration(enabled=False, supported_destinations=frozenset({SUPPORTED_DESTINATION_TYPE}))


@pytest.fixture
def job_store() -> InMemoryJobStore:
    return InMemoryJobStore()


@pytest.fixture
def export_headers() -> Dict[str, str]:
    return {"Accept": FHIR_JSON_CONTENT_TYPE, "Prefer": PREFER_RESPOND_ASYNC}


@pytest.fixture
def export_params() -> Dict[str, str]:
    return {"destinationType": SUPPORTED_DESTINATION_TYPE, "destinationConnectionString": CONNECTION_STRING}


def _client_for(job_store: InMemoryJobStore, config: ExportConfiguration):
    app.dependency_overrides[get_job_store] = lambda: job_store
    app.dependency_overrides[get_export_configuration] = lambda: config
    return TestClient(app)


@pytest.fixture
def client(job_store: InMemoryJobStore, export_config: ExportConfiguration):
    """TestClient wired to a fresh in-memory job store with export enabled."""
    yield _client_for(job_store, export_config)
    app.dependency_overrides.clear()


@pytest.fixture
def disabled_client(job_store: InMemoryJobStore, disabled_export_config: ExportConfiguration):
    """TestClient wired to a configuration with export switched off."""
    yield _client_for(job_store, disabled_export_config)
    app.dependency_overrides.clear()
