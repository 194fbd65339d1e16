"""Structured logging for request senders and marker stores.

Senders and marker stores log dotted event names (``send.completed``,
``marker.stored``, ``cleanup.failed``) with the request identifier bound as
context, so one identifier's attempts can be followed across retries and
process restarts.

Examples:
    Configure from the same SenderConfig the senders use::

        from make_idempotent.config import SenderConfig
        from make_idempotent.observability.logging import configure_logging

        configure_logging(SenderConfig.from_env())

    Output (JSON)::

        {
            "identifier": "payout-42",
            "event": "send.already_sent",
            "level": "info",
            "timestamp": "2024-01-01T00:00:00.000000Z"
        }
"""

import sys
from typing import Any

import structlog

from make_idempotent.config import SenderConfig

# Processors applied to every event before rendering
BASE_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def configure_logging(config: SenderConfig | None = None) -> None:
    """Configure structlog from ``config.log_level`` and ``config.json_logs``.

    Call once at startup, before the first event is logged; loggers are
    cached on first use.

    Args:
        config: Sender configuration. Defaults to SenderConfig().
    """
    config = config or SenderConfig()

    if config.json_logs:
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*BASE_PROCESSORS, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(config.log_level_number),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ from the calling module)
    """
    return structlog.get_logger(name)
