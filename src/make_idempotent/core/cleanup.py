"""Background expiry of markers.

Markers are deliberately kept after a successful send, so a store without
cleanup grows with every identifier ever sent. Stores created with a TTL mark
old markers as expired; this module removes them periodically.

Expiring a marker re-opens its identifier: a late duplicate send() after
expiry takes a fresh claim and sends the request again. Choose a TTL well
beyond the longest time a caller may keep retrying.

Stores with built-in expiry (e.g. Redis EXPIRE) do not need this task.

Examples:
    Running cleanup next to a sender::

        markers = MemoryMarkerStore(ttl_seconds=7 * 86400)
        task = await start_cleanup_task(markers, config=SenderConfig(cleanup_interval_seconds=600))
        ...
        await stop_cleanup_task(task)
"""

import asyncio

from make_idempotent.config import SenderConfig
from make_idempotent.observability.logging import get_logger
from make_idempotent.observability.metrics import record_cleanup
from make_idempotent.storage.base import MarkerStore

logger = get_logger(__name__)

# Seconds stop_cleanup_task waits before cancelling the loop
STOP_TIMEOUT_SECONDS = 5.0


async def run_cleanup_once(marker_store: MarkerStore) -> int:
    """Remove expired markers once, recording metrics and logs.

    Returns:
        The number of markers removed.
    """
    count = await marker_store.cleanup_expired()
    record_cleanup(count)
    if count > 0:
        logger.info("cleanup.completed", markers_removed=count)
    else:
        logger.debug("cleanup.completed", markers_removed=0)
    return count


def resolve_interval(interval_seconds: float | None, config: SenderConfig | None) -> float:
    """Return ``interval_seconds`` if given, else ``config.cleanup_interval_seconds``."""
    if interval_seconds is not None:
        return interval_seconds
    return (config or SenderConfig()).cleanup_interval_seconds


async def cleanup_loop(
    marker_store: MarkerStore,
    interval_seconds: float | None = None,
    stop_event: asyncio.Event | None = None,
    config: SenderConfig | None = None,
) -> None:
    """Remove expired markers periodically until stopped.

    A failing run is logged and the loop carries on with the next interval.

    Args:
        marker_store: Store to clean up
        interval_seconds: Time between runs; overrides the config when set
        stop_event: Set to stop the loop (optional)
        config: Supplies ``cleanup_interval_seconds`` (default SenderConfig())
    """
    interval_seconds = resolve_interval(interval_seconds, config)
    if stop_event is None:
        stop_event = asyncio.Event()

    logger.info("cleanup.started", interval_seconds=interval_seconds)

    while not stop_event.is_set():
        try:
            await run_cleanup_once(marker_store)
        except Exception as e:
            logger.error(
                "cleanup.failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue

    logger.info("cleanup.stopped")


async def start_cleanup_task(
    marker_store: MarkerStore,
    interval_seconds: float | None = None,
    config: SenderConfig | None = None,
) -> asyncio.Task[None]:
    """Start cleanup_loop as a background task.

    Returns:
        The running task; pass it to stop_cleanup_task on shutdown.
    """
    stop_event = asyncio.Event()
    task = asyncio.create_task(
        cleanup_loop(
            marker_store=marker_store,
            interval_seconds=resolve_interval(interval_seconds, config),
            stop_event=stop_event,
        )
    )
    task._stop_event = stop_event  # type: ignore[attr-defined]
    return task


async def stop_cleanup_task(task: asyncio.Task[None]) -> None:
    """Signal a cleanup task to stop and wait for it, cancelling if it hangs."""
    stop_event: asyncio.Event | None = getattr(task, "_stop_event", None)
    if stop_event is not None:
        stop_event.set()

    try:
        await asyncio.wait_for(task, timeout=STOP_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning("cleanup.stop_timeout")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("cleanup.cancelled")
