"""Application settings, read from the environment and an optional `.env` file."""

import logging

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str | list[str]) -> list[str]:
    if isinstance(value, list):
        return [item for item in value if item]
    return [item.strip() for item in value.split(",") if item.strip()]


def _normalize_log_level(field_name: str, value: str) -> str:
    normalized = value.upper()
    valid_levels = logging.getLevelNamesMapping()
    if normalized not in valid_levels:
        msg = f"Invalid {field_name} '{value}'. Must be one of: {', '.join(sorted(valid_levels))}"
        raise ValueError(msg)
    return normalized


class Settings(BaseSettings):
    """
    Subway service configuration.

    Secrets are read from `SECRET_*` variables (e.g. `SECRET_DATABASE_URL`) so
    they are easy to spot in deployment manifests.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # API
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Subway"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "http://localhost:3000"

    # Database
    DATABASE_URL: str = Field(validation_alias="SECRET_DATABASE_URL")
    DATABASE_ECHO: bool = False
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    ALEMBIC_INI_PATH: str = "alembic.ini"

    # OpenTelemetry
    OTEL_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "subway-backend"
    OTEL_ENVIRONMENT: str = "production"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_LOGS_ENDPOINT: str | None = None
    OTEL_EXPORTER_OTLP_HEADERS: str | None = Field(default=None, validation_alias="SECRET_OTEL_HEADERS")
    OTEL_EXCLUDED_URLS: str = "/health,/ready"
    OTEL_LOG_LEVEL: str = "NOTSET"  # NOTSET exports every level

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("ALLOWED_ORIGINS", "OTEL_EXCLUDED_URLS", mode="after")
    @classmethod
    def parse_csv(cls, v: str | list[str]) -> list[str]:
        """Comma-separated values become a list; empty entries are dropped."""
        return _split_csv(v)

    @field_validator("LOG_LEVEL", "OTEL_LOG_LEVEL", mode="after")
    @classmethod
    def validate_log_levels(cls, v: str, info: ValidationInfo) -> str:
        return _normalize_log_level(info.field_name or "log level", v)


settings = Settings()


def require_config(*field_names: str) -> None:
    """
    Fail fast when settings a feature depends on are unset or blank.

    Raises:
        ValueError: Naming every missing field

    Example:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
    """
    missing = [
        name
        for name in field_names
        if (value := getattr(settings, name, None)) is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        msg = f"Required configuration missing: {', '.join(missing)}"
        raise ValueError(msg)
