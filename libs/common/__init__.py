"""Common utilities shared across the service.

Includes:
- ``config``: pydantic-settings configuration from environment variables.
- ``logging``: structured logging setup with structlog.
- ``metrics``: Prometheus metrics collector.
- ``tracing``: OpenTelemetry setup and span helpers.

Import pattern:
- from libs.common.config import SearchConfig
- from libs.common.logging import configure_logging
"""
