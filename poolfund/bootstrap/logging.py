"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

from poolfund.infrastructure.observability import configure_structlog as _configure_structlog


def configure_structlog(environment: str | None = None) -> None:
    """Configure structlog; environment defaults to APP_ENV."""
    _configure_structlog(environment=environment)


__all__ = ["configure_structlog"]
