"""Prometheus metrics for request senders and marker stores.

Metrics include:

- Send attempts by outcome (SENT, ALREADY_SENT, INCONCLUSIVE, ...)
- Marker store operations by operation and result
- Marker cleanup runs and removed markers

Examples:
    Recording a send outcome::

        from make_idempotent.models import SendOutcome
        from make_idempotent.observability.metrics import record_send

        record_send(SendOutcome.ALREADY_SENT)

    Recording a marker operation::

        record_marker_operation("store", "conflict")
"""

from prometheus_client import Counter

from make_idempotent.models import SendOutcome

# Labels: outcome (SENT, ALREADY_SENT, ALREADY_SENDING, INCONCLUSIVE, FAILED)
sends_total = Counter(
    "make_idempotent_sends_total",
    "Total number of send attempts by outcome",
    ["outcome"],
)

# Labels: operation (store, unstore), result (ok, conflict, absent, error)
marker_operations_total = Counter(
    "make_idempotent_marker_operations_total",
    "Total number of marker store operations",
    ["operation", "result"],
)

cleanup_operations = Counter(
    "make_idempotent_cleanup_operations_total",
    "Total number of marker cleanup runs performed",
)

cleanup_markers_removed = Counter(
    "make_idempotent_cleanup_markers_removed_total",
    "Total number of expired markers removed by cleanup",
)


def record_send(outcome: SendOutcome) -> None:
    """Record the outcome of one send attempt.

    Examples:
        >>> record_send(SendOutcome.SENT)
        >>> record_send(SendOutcome.INCONCLUSIVE)
    """
    sends_total.labels(outcome=outcome.value).inc()


def record_marker_operation(operation: str, result: str) -> None:
    """Record a marker store operation.

    Args:
        operation: "store" or "unstore"
        result: "ok", "conflict", "absent" or "error"
    """
    marker_operations_total.labels(operation=operation, result=result).inc()


def record_cleanup(markers_removed: int) -> None:
    """Record a cleanup run.

    Args:
        markers_removed: Number of expired markers removed
    """
    cleanup_operations.inc()
    cleanup_markers_removed.inc(markers_removed)
