"""Observability utilities for request senders.

This package provides:
- Prometheus metrics for send outcomes, marker operations and cleanup
- Structured logging with the request identifier as context
"""

from make_idempotent.observability.logging import configure_logging, get_logger
from make_idempotent.observability.metrics import (
    record_cleanup,
    record_marker_operation,
    record_send,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "record_send",
    "record_marker_operation",
    "record_cleanup",
]
