"""Bootstrap wiring for logging configuration."""

from __future__ import annotations

from bandgo.config import BandgoConfig
from bandgo.infrastructure.observability import configure_structlog as _configure_structlog


def configure_logging(config: BandgoConfig) -> None:
    """Configure structlog for the configured environment."""
    _configure_structlog(environment=config.environment)


__all__ = ["configure_logging"]
