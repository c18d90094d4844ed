"""Correlation ID management for tracing one repository call through logs.

Correlation ids live in a ContextVar, so they follow a call across awaits
within the same task. A caller opens one scope per user action; every log
line emitted by the managers underneath carries the same id.

Usage:
    with correlation_scope():
        await band_service.leave_band(band_id, user_id)

    # In structlog configuration
    processors = [..., correlation_id_processor, ...]
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator
from uuid import uuid4

# Empty string means "no active scope".
_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a new correlation ID (UUID4 string)."""
    return str(uuid4())


def get_correlation_id() -> str:
    """Get the current correlation ID, or an empty string outside a scope."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current context."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    A scope nested inside another keeps the outer id, so a facade call that
    fans out to several managers logs under one id.

    Args:
        correlation_id: Explicit id to use; generated when omitted.

    Yields:
        The active correlation id.
    """
    current = _correlation_id.get()
    if current and correlation_id is None:
        yield current
        return
    token = _correlation_id.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id.get()
    finally:
        _correlation_id.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding the active correlation_id to each entry.

    Args:
        logger: The logger instance (unused, required by structlog).
        method_name: The logging method name (unused, required by structlog).
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary with correlation_id added when one is active.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
