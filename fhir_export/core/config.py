from dataclasses import dataclass
from typing import FrozenSet, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


@dataclass(frozen=True)
class ExportConfiguration:
    """Read-only view of the export settings handed to the gate and orchestrator."""
    enabled: bool
    supported_destinations: FrozenSet[str]

    @classmethod
    def from_settings(cls, source: "Settings") -> "ExportConfiguration":
        return cls(
            enabled=source.EXPORT_ENABLED,
            supported_destinations=source.supported_export_destinations,
        )


class Settings(BaseSettings):
    APP_NAME: str = "FHIR Bulk Export Service"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Export settings
    EXPORT_ENABLED: bool = Field(default=False, description="Master switch for the $export operation.")
    EXPORT_SUPPORTED_DESTINATIONS: str = Field(
        default="AzureBlockBlob",
        description="Comma-separated, case-sensitive list of accepted destinationType values.",
    )

    # Job store settings
    JOB_STORE_BACKEND: str = Field(default="memory", description="Export job store backend: 'memory' or 'redis'.")
    EXPORT_JOB_KEY_PREFIX: str = "export_job"
    EXPORT_JOB_TTL_SECONDS: int = Field(default=0, ge=0, description="Expiry for stored job records; 0 keeps them forever.")

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    model_config = {
        "extra": "ignore",
        "env_file": ".env",
        "env_file_encoding": "utf-8"
    }

    @property
    def supported_export_destinations(self) -> FrozenSet[str]:
        return frozenset(
            item.strip() for item in self.EXPORT_SUPPORTED_DESTINATIONS.split(",") if item.strip()
        )

    @property
    def export_configuration(self) -> ExportConfiguration:
        return ExportConfiguration.from_settings(self)


settings = Settings()
