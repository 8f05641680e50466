"""Configuration management for the module search service.

This module centralizes environment-driven configuration. It builds on
``pydantic_settings.BaseSettings`` so configuration can be provided via
environment variables, ``.env`` files, or defaults. Field names double as
environment variable names (case-insensitive), e.g. ``ml_log_level`` is read
from ``ML_LOG_LEVEL``.

Usage
- Inject the config in the service entrypoint: ``config = SearchConfig()``
- Or select dynamically: ``config = get_config("search")``
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_MODULES_INDEX_URL = "https://modules.fajox.one"


class BaseConfig(BaseSettings):
    """Base configuration shared by every entrypoint.

    Notes
    - Add new shared settings here so downstream configs inherit them.
    - Prefer a typed field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ml_env: str = Field(default="local", description="Deployment environment name")

    # Observability
    ml_tracing_enabled: bool = Field(default=False, description="Enable OpenTelemetry tracing")
    ml_otel_exporter: str = Field(default="http://localhost:4318/v1/traces", description="OTLP/HTTP traces endpoint")
    ml_otel_service_name: str = Field(default="module-search", description="Service name reported to tracing")

    # Logging
    ml_log_level: str = Field(default="INFO", description="Root log level")
    ml_log_format: str = Field(default="json", description="``json`` or ``console``")


class SearchConfig(BaseConfig):
    """Configuration for the search service.

    Adds the API port, the upstream module index location and the knobs that
    shape outbound fetching and result ranking.
    """

    ml_search_port: int = Field(default=9007, description="HTTP port for uvicorn")
    ml_modules_index_url: str = Field(default=DEFAULT_MODULES_INDEX_URL, description="Base URL of the module index")
    ml_http_timeout: float = Field(default=30.0, description="Outbound request timeout in seconds")
    ml_search_default_limit: int = Field(default=5, description="Results returned when ``limit`` is absent or invalid")
    ml_search_max_concurrent_fetches: int = Field(default=32, description="Upper bound on in-flight module source fetches")
    ml_search_metadata_parser: str = Field(default="docstring", description="``docstring`` or ``comments``")


def get_config(service_name: str) -> BaseConfig:
    """Get configuration for a specific entrypoint.

    Parameters
    - service_name: ``search`` selects ``SearchConfig``.

    Returns
    - A concrete ``BaseConfig`` subclass pre-wired to read the right env vars.
    """
    config_map = {
        "search": SearchConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(service_name, BaseConfig)
    return config_class()

