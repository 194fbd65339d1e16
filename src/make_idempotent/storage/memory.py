"""In-memory marker store with asyncio concurrency control.

The MemoryMarkerStore is suitable for:
    - Single-process applications
    - Development and testing

Markers do not survive a restart. Use FileMarkerStore, or a store backed by a
shared database, when the protocol has to recover from crashes.

Examples:
    Basic usage::

        from make_idempotent.storage.memory import MemoryMarkerStore

        markers = MemoryMarkerStore()

        await markers.store("payment-123")
        await markers.store("payment-123")  # raises RequestAlreadySendingError

        await markers.unstore("payment-123")
        await markers.unstore("payment-123")  # no-op
"""

import asyncio
from datetime import UTC, datetime, timedelta

from make_idempotent.exceptions import RequestAlreadySendingError
from make_idempotent.models import MarkerRecord
from make_idempotent.observability.logging import get_logger
from make_idempotent.observability.metrics import record_marker_operation
from make_idempotent.storage.base import MarkerStore

logger = get_logger(__name__)


class MemoryMarkerStore(MarkerStore):
    """In-memory marker store.

    Markers live in a dictionary guarded by a single asyncio.Lock, which makes
    the existence check and the insert in store() one atomic step for all
    coroutines on the event loop.

    Attributes:
        ttl_seconds: Lifetime of new markers, or None to keep them forever.
    """

    def __init__(self, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._markers: dict[str, MarkerRecord] = {}
        self._lock = asyncio.Lock()

    async def store(self, identifier: str) -> None:
        """Atomically insert a marker for ``identifier``.

        An expired marker is replaced as if it were absent.

        Raises:
            RequestAlreadySendingError: If an unexpired marker exists.
        """
        async with self._lock:
            now = datetime.now(UTC)
            existing = self._markers.get(identifier)
            if existing is not None and not existing.is_expired(now):
                record_marker_operation("store", "conflict")
                raise RequestAlreadySendingError(identifier=identifier)

            expires_at = None
            if self.ttl_seconds is not None:
                expires_at = now + timedelta(seconds=self.ttl_seconds)
            self._markers[identifier] = MarkerRecord(
                identifier=identifier,
                created_at=now,
                expires_at=expires_at,
            )

        record_marker_operation("store", "ok")
        logger.debug("marker.stored", identifier=identifier)

    async def unstore(self, identifier: str) -> None:
        """Delete the marker for ``identifier`` if present."""
        async with self._lock:
            removed = self._markers.pop(identifier, None)

        record_marker_operation("unstore", "ok" if removed is not None else "absent")
        logger.debug("marker.unstored", identifier=identifier, was_present=removed is not None)

    async def get(self, identifier: str) -> MarkerRecord | None:
        """Return the unexpired marker for ``identifier``, if any."""
        record = self._markers.get(identifier)
        if record is None or record.is_expired(datetime.now(UTC)):
            return None
        return record

    async def contains(self, identifier: str) -> bool:
        """Return True if an unexpired marker exists for ``identifier``."""
        return await self.get(identifier) is not None

    async def cleanup_expired(self) -> int:
        """Remove expired markers.

        Returns:
            The number of markers removed.
        """
        now = datetime.now(UTC)
        async with self._lock:
            expired = [key for key, record in self._markers.items() if record.is_expired(now)]
            for key in expired:
                del self._markers[key]
        return len(expired)

    def marker_count(self) -> int:
        """Number of markers held, expired ones included."""
        return len(self._markers)
