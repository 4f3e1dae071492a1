"""Structured logging configuration with structlog.

Production renders one JSON object per line; development renders
colored console output. Every entry carries the service name, level,
ISO timestamp and the request's correlation_id when one is set.

Log Entry Format:
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "vote_cast",
        "service": "poolfund-governance",
        "component": "proposal_lifecycle",
        "correlation_id": "uuid",
        ...additional context
    }

Environment Variables:
- LOG_LEVEL: Minimum level (default: INFO)
- APP_ENV: "production" (default) or "development"

Usage:
    from poolfund.infrastructure.observability import configure_structlog

    configure_structlog()  # environment from APP_ENV
    configure_structlog(environment="development")
"""

import logging
import os
from typing import Any, cast

import structlog
from structlog.typing import Processor

from poolfund.infrastructure.observability.correlation import correlation_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
APP_ENV_ENV = "APP_ENV"
DEFAULT_ENVIRONMENT = "production"
SERVICE_NAME = "poolfund-governance"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _add_service_name(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_structlog(environment: str | None = None) -> None:
    """Configure structlog for the application.

    Should be called once at application startup.

    Args:
        environment: 'production' for JSON output, 'development' for console.
                     Defaults to the APP_ENV environment variable.
    """
    environment = environment or os.getenv(APP_ENV_ENV, DEFAULT_ENVIRONMENT)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, correlation_id_processor),
        cast(Processor, _add_service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[*shared_processors, final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
