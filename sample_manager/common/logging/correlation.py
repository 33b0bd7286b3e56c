"""Correlation context for tracing one sample through analysis and caching."""

import uuid
import logging
import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional


# Context variable for correlation ID (thread-safe, async-safe)
correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for the sample being processed
sample_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "sample_id", default=None
)


def generate_correlation_id() -> str:
    """Generate unique correlation ID."""
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str | None):
    """Set correlation ID in context."""
    correlation_id_var.set(cid)


def get_sample_id() -> str | None:
    """Get current sample ID from context."""
    return sample_id_var.get()


def set_sample_id(sid: str | None):
    """Set sample ID in context."""
    sample_id_var.set(sid)


@contextmanager
def correlation_scope(
    sample_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> Iterator[str]:
    """
    Bind a correlation ID (and optionally a sample ID) for the enclosed block.

    Previous values are restored on exit, so scopes nest.

    Usage:
        with correlation_scope(sample_id="kick-01") as cid:
            service.analyze_sample("kick-01", data)
    """
    cid = correlation_id or generate_correlation_id()
    cid_token = correlation_id_var.set(cid)
    sid_token = sample_id_var.set(sample_id)
    try:
        yield cid
    finally:
        sample_id_var.reset(sid_token)
        correlation_id_var.reset(cid_token)


class CorrelationLogFilter(logging.Filter):
    """
    Logging filter that adds correlation_id and sample_id to log records.

    Use with standard logging to auto-inject context vars.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.sample_id = get_sample_id()
        return True
