"""Base service logging mixin and shared manager helpers.

Usage:
    from bandgo.application.services.base import LoggingMixin

    class MyService(LoggingMixin):
        def __init__(self, store: EntityStoreProtocol) -> None:
            self._store = store
            self._init_logger(component="bands")

        async def do_something(self, band_id: str) -> None:
            log = self._log_operation("do_something", band_id=band_id)
            log.debug("do_something_started")
            # ... do work ...
            log.info("something_done")

The correlation id is not bound here; the correlation_id_processor
installed by configure_structlog adds it to every entry.
"""

from __future__ import annotations

from typing import Any

import structlog

from bandgo.application.ports.entity_store import EntityKind, UnitOfWork
from bandgo.domain.errors import NotFoundError


class LoggingMixin:
    """Mixin providing structured logging for services.

    The logger is bound with:
    - service: The class name of the service
    - component: The functional area (bands, rehearsals, events, ...)

    Each operation gets:
    - operation: The name of the operation being performed
    - Any additional context passed to _log_operation()

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.stdlib.BoundLogger

    def _init_logger(self, component: str = "core") -> None:
        """Initialize the logger with service name binding.

        Should be called in __init__ after setting up dependencies.

        Args:
            component: The component type for log categorization.
        """
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.stdlib.BoundLogger:
        """Create an operation-scoped logger.

        Args:
            operation: Name of the operation being performed.
            **context: Additional context to bind to the logger.

        Returns:
            BoundLogger with operation context.
        """
        return self._log.bind(operation=operation, **context)


async def require(
    uow: UnitOfWork, kind: EntityKind, entity_id: str, label: str
) -> Any:
    """Load an entity inside a transaction or raise NotFoundError.

    Args:
        uow: The open transaction.
        kind: Collection to read.
        entity_id: Id to resolve.
        label: Entity name used in the error (e.g. "band").

    Raises:
        NotFoundError: If the id does not resolve.
    """
    entity = await uow.get(kind, entity_id)
    if entity is None:
        raise NotFoundError(label, entity_id)
    return entity
