import logging
import os
import sys
from typing import Optional

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="allow")

    api_prefix: str = "/api/v1"

    # Only honoured with trust_user_id_header, behind a gateway that sets it after
    # authenticating the caller and strips it from client requests
    user_id_header: str = "X-User-ID"
    trust_user_id_header: bool = False

    # Infrastructure dependencies
    postgres_user: str
    postgres_host: str
    postgres_password: str
    postgres_port: int
    postgres_db: str

    # Tenant provisioning service
    provisioner_url: str = "http://localhost:8084"
    provisioner_api_key: str = ""
    provisioner_timeout_seconds: int = 30

    # Personal tenants are created the first time a user lists their spaces
    lazy_personal_provisioning: bool = True

    # Quotas and compliance defaults for the personal tier
    personal_max_data_sources: int = 10
    personal_max_files: int = 1000
    personal_max_storage_mb: int = 5120  # 5GB
    personal_max_vector_dimensions: int = 1536
    personal_max_monthly_searches: int = 10000
    personal_data_retention_days: int = 365

    @model_validator(mode="after")
    def validate_provisioning_limits(self):
        if self.provisioner_timeout_seconds <= 0:
            logging.error(
                "PROVISIONER_TIMEOUT_SECONDS must be greater than zero. Current value: %s",
                self.provisioner_timeout_seconds,
            )
            sys.exit(1)

        quotas = {
            "PERSONAL_MAX_DATA_SOURCES": self.personal_max_data_sources,
            "PERSONAL_MAX_FILES": self.personal_max_files,
            "PERSONAL_MAX_STORAGE_MB": self.personal_max_storage_mb,
            "PERSONAL_MAX_VECTOR_DIMENSIONS": self.personal_max_vector_dimensions,
            "PERSONAL_MAX_MONTHLY_SEARCHES": self.personal_max_monthly_searches,
            "PERSONAL_DATA_RETENTION_DAYS": self.personal_data_retention_days,
        }
        for name, value in quotas.items():
            if value <= 0:
                logging.error(
                    "%s must be greater than zero. Current value: %s", name, value
                )
                sys.exit(1)

        return self

    @computed_field
    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Settings) -> None:
    """Override settings (primarily for testing)."""
    global _settings
    _settings = settings


def reset_settings() -> None:
    """Reset settings to None (for test cleanup)."""
    global _settings
    _settings = None


def get_loglevel():
    loglevel = os.getenv("LOGLEVEL", "INFO")

    match loglevel:
        case "INFO":
            return logging.INFO
        case "WARNING":
            return logging.WARNING
        case "ERROR":
            return logging.ERROR
        case "CRITICAL":
            return logging.CRITICAL
        case "DEBUG":
            return logging.DEBUG
        case _:
            return logging.INFO
