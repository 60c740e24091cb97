"""Application configuration module.

This module contains settings for the Linkly URL shortener,
loaded from environment variables with appropriate defaults.
"""

from __future__ import annotations

import logging
import string
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import Field, ValidationInfo, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Set up basic logger for config module
logger = logging.getLogger(__name__)

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent


class EnvironmentType(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with defaults.

    Settings are loaded from environment variables, with fallback to
    values in .env file if present, and finally to the default values
    specified here.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment setting
    ENVIRONMENT: EnvironmentType = EnvironmentType.DEVELOPMENT

    # App Information
    APP_NAME: str = "Linkly"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Short links with click analytics"

    # API Configuration
    BASE_URL: str = "http://localhost:8000"  # Used for building short links
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # CORS settings
    CORS_ORIGINS: Union[List[str], str] = ["*"]

    # Short code generation
    CODE_LENGTH: int = 8
    CODE_ALPHABET: str = string.ascii_letters + string.digits
    CODE_MAX_ATTEMPTS: int = 30  # Sampling attempts before giving up
    CUSTOM_CODE_MIN_LENGTH: int = 6
    CUSTOM_CODE_MAX_LENGTH: int = 20
    MIN_PATH_LENGTH: int = 3  # Anything shorter is never treated as a short code

    # Redirect targets for paths that don't resolve to a link
    HOME_PATH: str = "/"
    NOT_FOUND_PATH: str = "/not-found"

    # Click analytics
    # Enable only behind a proxy or CDN that overwrites these headers
    TRUST_PROXY_HEADERS: bool = False  # X-Forwarded-For / X-Real-IP and the geo country headers
    GEO_COUNTRY_HEADERS: Union[List[str], str] = [
        "cf-ipcountry",
        "x-vercel-ip-country",
        "cloudfront-viewer-country",
        "x-country-code",
    ]

    # PostgreSQL settings
    POSTGRES_SERVER: str = Field(default="localhost")
    POSTGRES_PORT: int = Field(default=5432)
    POSTGRES_USER: str = Field(default="postgres")
    POSTGRES_PASSWORD: str = Field(default="postgres")
    POSTGRES_DB: str = Field(default="linkly")
    DATABASE_URL: Optional[str] = None  # Full SQLAlchemy URL, overrides POSTGRES_*

    # PostgreSQL pool settings
    POSTGRES_POOL_SIZE: int = 20
    POSTGRES_POOL_MAX_OVERFLOW: int = 10
    POSTGRES_POOL_TIMEOUT: int = 30
    POSTGRES_POOL_RECYCLE: int = 300
    DB_ECHO: bool = False
    DB_CREATE_TABLES: bool = True  # Create missing tables on startup

    # Logging configuration
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILENAME: str = "app.log"
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "7 days"
    LOG_FORMAT: str = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}"
    LOG_JSON: bool = True
    REQUEST_LOGGING_ENABLED: bool = True
    ACCESS_LOG_ENABLED: bool = True  # Separate log of every redirect attempt

    # Scheduler settings
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_JOBSTORE_URL: str = "sqlite:///jobs.sqlite"
    SCHEDULER_JOB_COALESCE: bool = True
    SCHEDULER_JOB_MAX_INSTANCES: int = 1
    SCHEDULER_MISFIRE_GRACE_TIME: int = 15 * 60
    COUNTER_RECONCILE_INTERVAL_MINUTES: int = 60
    COUNTER_RECONCILE_ON_STARTUP: bool = False

    # OpenTelemetry configuration
    OTEL_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "linkly"
    OTEL_RESOURCE_ATTRIBUTES: str = "service.namespace=linkly"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://localhost:4317"
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: str = "http://localhost:4317"
    OTEL_EXPORTER_OTLP_PROTOCOL: str = "grpc"  # grpc or http/protobuf
    OTEL_TRACES_SAMPLER: str = "parentbased_traceidratio"
    OTEL_TRACES_SAMPLER_ARG: float = 1.0
    OTEL_METRICS_EXPORT_INTERVAL_MILLIS: int = 60000

    # Validators
    @field_validator("CODE_ALPHABET")
    def validate_code_alphabet(cls, v: str) -> str:
        """Fall back to alphanumerics when the alphabet is empty."""
        if not v:
            return string.ascii_letters + string.digits
        return v

    @field_validator("CODE_MAX_ATTEMPTS", "CODE_LENGTH")
    def validate_positive(cls, v: int, info: ValidationInfo) -> int:
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("CORS_ORIGINS", "GEO_COUNTRY_HEADERS")
    def validate_list_or_string(cls, v: Union[List[str], str]) -> List[str]:
        """Convert comma-separated string to list if needed."""
        if isinstance(v, str):
            if not v.strip():
                return []
            if v == "*":
                return ["*"]
            return [item.strip() for item in v.split(",")]
        return v

    # Computed fields
    @computed_field
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Construct the SQLAlchemy database URI from settings or use override."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @computed_field
    def SHORT_LINK_BASE(self) -> str:
        """Base URL that short codes are appended to."""
        return self.BASE_URL.rstrip("/")


# Create a singleton instance of the settings
settings = Settings()
