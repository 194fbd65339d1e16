"""Marker store protocol.

A marker store records "a send attempt for this identifier has started and
has not yet been determined unnecessary". Request senders only ever need two
of its operations, ``store`` and ``unstore``; the other two exist for
operators (inspection and TTL cleanup).

Examples:
    Implementing a marker store on top of Redis::

        from make_idempotent.exceptions import RequestAlreadySendingError

        class RedisMarkerStore:
            async def store(self, identifier: str) -> None:
                # SET NX makes the check and the insert one atomic step
                created = await self.redis.set(f"marker:{identifier}", "1", nx=True)
                if not created:
                    raise RequestAlreadySendingError(identifier=identifier)

            async def unstore(self, identifier: str) -> None:
                await self.redis.delete(f"marker:{identifier}")

            async def contains(self, identifier: str) -> bool:
                return await self.redis.exists(f"marker:{identifier}") == 1

            async def cleanup_expired(self) -> int:
                # Redis expires keys itself
                return 0

Contract:
    All MarkerStore implementations MUST guarantee:

    1. **Atomic insert**: store() checks for an existing marker and inserts
       a new one in a single atomic step (compare-and-insert, never
       check-then-insert). A second store() for the same identifier raises
       RequestAlreadySendingError instead of overwriting.

    2. **Durability**: store() returns only after the marker is persisted.

    3. **Idempotent delete**: unstore() of an absent identifier succeeds and
       changes nothing.

    4. **Expiry**: if the store expires markers, an expired marker counts as
       absent for store() and contains().
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MarkerStore(Protocol):
    """Protocol defining the interface for marker store backends.

    Error Handling:
        store() raises RequestAlreadySendingError when the marker exists.
        Backend failures should surface as StorageError; they are fatal to
        the send that triggered them.
    """

    async def store(self, identifier: str) -> None:
        """Atomically insert a marker for ``identifier``.

        Raises:
            RequestAlreadySendingError: If a marker already exists.
        """
        ...

    async def unstore(self, identifier: str) -> None:
        """Delete the marker for ``identifier`` if present."""
        ...

    async def contains(self, identifier: str) -> bool:
        """Return True if an unexpired marker exists for ``identifier``."""
        ...

    async def cleanup_expired(self) -> int:
        """Remove expired markers.

        Returns:
            The number of markers removed.
        """
        ...
