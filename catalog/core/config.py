"""Centralized configuration management with environment-aware defaults.

Configuration is a Pydantic Settings model, so every value is typed and
validated and can be overridden through environment variables or a ``.env``
file. Nested sections use the ``__`` delimiter, e.g.
``PAGINATION__DEFAULT_PAGE_SIZE=25``.

Configuration sources (in order of precedence):
1. Environment variables
2. .env file in project root
3. Default values in model definitions
4. Environment-based defaults (production vs development)
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        Field(default="INFO", description="Logging level")
    )
    log_formatter_type: Literal["console", "json"] | None = Field(
        default=None,
        description="Log output formatter. Auto-detected if not specified.",
    )
    excluded_paths: list[str] = Field(
        default_factory=lambda: ["/health"],
        description="Paths to exclude from request logging",
    )
    slow_request_threshold_ms: int = Field(
        default=1000,
        gt=0,
        description="Threshold for slow request warnings (milliseconds)",
    )
    sensitive_fields: list[str] = Field(
        default_factory=lambda: [
            "password",
            "token",
            "secret",
            "authorization",
        ],
        description="Field names to redact",
    )


class ObservabilityConfig(BaseModel):
    """OpenTelemetry tracing and metrics configuration."""

    enable_tracing: bool = Field(
        default=False,
        description="Enable OpenTelemetry tracing",
    )
    enable_metrics: bool = Field(
        default=True,
        description="Record per-handler request metrics",
    )
    exporter_type: Literal["console", "otlp", "none"] = Field(
        default="console",
        description="Trace exporter type. Defaults to console for development.",
    )
    exporter_endpoint: str | None = Field(
        default=None,
        description="OTLP exporter endpoint",
    )
    trace_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    @field_validator("exporter_endpoint", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


class PaginationConfig(BaseModel):
    """Defaults applied when page/size query parameters are absent or invalid."""

    default_page: int = Field(default=1, ge=1, description="Default page number")
    default_page_size: int = Field(
        default=40, ge=1, description="Default page size for listings"
    )
    search_page_size: int = Field(
        default=10, ge=1, description="Default page size for search endpoints"
    )
    max_page_size: int = Field(
        default=100, ge=1, description="Upper bound applied to requested sizes"
    )

    @model_validator(mode="after")
    def check_sizes(self) -> "PaginationConfig":
        """Ensure defaults never exceed the configured maximum."""
        if max(self.default_page_size, self.search_page_size) > self.max_page_size:
            msg = "default page sizes must not exceed max_page_size"
            raise ValueError(msg)
        return self


class IdentityConfig(BaseModel):
    """Connection settings for the identity provider (SSO) service."""

    base_url: str = Field(
        default="http://localhost:8081",
        description="Base URL of the identity provider",
    )
    timeout_seconds: float = Field(
        default=5.0, gt=0, le=60, description="Per-request timeout"
    )
    parse_claims_path: str = Field(
        default="/api/sso/claims",
        description="Endpoint resolving a bearer token to a user identifier",
    )
    create_user_path: str = Field(
        default="/api/sso/users",
        description="Endpoint provisioning a new user",
    )


class Settings(BaseSettings):
    """Main settings class for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        env_nested_delimiter="__",
    )

    # Application settings
    app_name: str = Field(default="Catalog", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environment the application is running in",
    )
    debug: bool = Field(default=True, description="Debug mode flag")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")
    docs_url: str | None = Field(default="/docs", description="Swagger UI URL")
    openapi_url: str | None = Field(
        default="/openapi.json", description="OpenAPI schema URL"
    )

    log_config: LogConfig = Field(
        default_factory=LogConfig, description="Logging configuration"
    )
    observability_config: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig, description="Observability configuration"
    )
    pagination: PaginationConfig = Field(
        default_factory=PaginationConfig, description="Pagination defaults"
    )
    identity_config: IdentityConfig = Field(
        default_factory=IdentityConfig, description="Identity provider settings"
    )

    def model_post_init(self, __context: object) -> None:
        """Post initialization to set environment-based defaults."""
        super().model_post_init(__context)

        if self.log_config.log_formatter_type is None:
            self.log_config.log_formatter_type = self._detect_formatter()

        if (
            self.environment == "production"
            and self.observability_config.exporter_type == "console"
        ):
            self.observability_config.exporter_type = "otlp"

    def _detect_formatter(self) -> Literal["console", "json"]:
        """Auto-detect log formatter based on environment."""
        # Container platforms ingest structured stdout
        if os.getenv("K_SERVICE") or os.getenv("AWS_EXECUTION_ENV"):
            return "json"
        if self.environment == "development":
            return "console"
        return "json"

    @field_validator("docs_url", "openapi_url", mode="before")
    @classmethod
    def empty_str_to_none(cls, v: str | None) -> str | None:
        """Convert empty strings to None for nullable fields."""
        if v == "":
            return None
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
