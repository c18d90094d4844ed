"""Composition root for wiring dependencies.

This package is the only place that picks concrete adapters; managers and
the repository facade depend on ports alone.
"""

from bandgo.bootstrap.logging import configure_logging
from bandgo.bootstrap.repository import (
    create_repository,
    get_repository,
    reset_repository,
)

__all__: list[str] = [
    "configure_logging",
    "create_repository",
    "get_repository",
    "reset_repository",
]
