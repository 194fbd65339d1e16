"""File-based marker store that survives process restarts.

Each marker is one JSON file named after the SHA-256 of its identifier.
Markers are created with ``O_CREAT | O_EXCL``, so the existence check and the
insert are a single atomic filesystem operation, and fsynced before store()
returns.

The store is safe for several processes on one host sharing a local
directory. Network filesystems that do not honor ``O_EXCL`` are not
supported.

Examples:
    Basic usage::

        from make_idempotent.storage.file import FileMarkerStore

        markers = FileMarkerStore("/var/lib/payouts/markers", ttl_seconds=7 * 86400)
        await markers.store("payout-42")
"""

import asyncio
import hashlib
import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from make_idempotent.exceptions import RequestAlreadySendingError, StorageError
from make_idempotent.models import MarkerRecord
from make_idempotent.observability.logging import get_logger
from make_idempotent.observability.metrics import record_marker_operation
from make_idempotent.storage.base import MarkerStore

logger = get_logger(__name__)

MARKER_SUFFIX = ".json"


class FileMarkerStore(MarkerStore):
    """Marker store keeping one file per marker in a directory.

    Blocking filesystem calls run in a worker thread via asyncio.to_thread.

    A marker file whose contents cannot be parsed (e.g. left by a crash
    before store() returned) still counts as present and never expires;
    an operator has to remove it.

    Attributes:
        directory: Directory holding the marker files.
        ttl_seconds: Lifetime of new markers, or None to keep them forever.
    """

    def __init__(self, directory: str | os.PathLike[str], ttl_seconds: int | None = None) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.directory = Path(directory)
        self.ttl_seconds = ttl_seconds
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                message=f"Failed to create marker directory {self.directory}: {e}",
                cause=e,
            ) from e

    def path_for(self, identifier: str) -> Path:
        """Return the marker file path for ``identifier``."""
        digest = hashlib.sha256(identifier.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{MARKER_SUFFIX}"

    async def store(self, identifier: str) -> None:
        """Atomically create the marker file for ``identifier``.

        Raises:
            RequestAlreadySendingError: If an unexpired marker exists.
            StorageError: If the filesystem operation fails.
        """
        try:
            await asyncio.to_thread(self._store_sync, identifier)
        except RequestAlreadySendingError:
            record_marker_operation("store", "conflict")
            raise
        except StorageError:
            record_marker_operation("store", "error")
            raise
        record_marker_operation("store", "ok")
        logger.debug("marker.stored", identifier=identifier)

    async def unstore(self, identifier: str) -> None:
        """Delete the marker file for ``identifier`` if present.

        Raises:
            StorageError: If the file exists but cannot be removed.
        """
        try:
            removed = await asyncio.to_thread(self._remove, self.path_for(identifier))
        except StorageError:
            record_marker_operation("unstore", "error")
            raise
        record_marker_operation("unstore", "ok" if removed else "absent")
        logger.debug("marker.unstored", identifier=identifier, was_present=removed)

    async def get(self, identifier: str) -> MarkerRecord | None:
        """Return the unexpired marker for ``identifier``, if any."""
        record = await asyncio.to_thread(self._read, self.path_for(identifier), identifier)
        if record is None or record.is_expired(datetime.now(UTC)):
            return None
        return record

    async def contains(self, identifier: str) -> bool:
        """Return True if an unexpired marker exists for ``identifier``."""
        return await self.get(identifier) is not None

    async def cleanup_expired(self) -> int:
        """Remove expired marker files.

        Returns:
            The number of markers removed.
        """
        return await asyncio.to_thread(self._cleanup_sync)

    def _store_sync(self, identifier: str) -> None:
        path = self.path_for(identifier)
        now = datetime.now(UTC)
        expires_at = None
        if self.ttl_seconds is not None:
            expires_at = now + timedelta(seconds=self.ttl_seconds)
        data = MarkerRecord(
            identifier=identifier,
            created_at=now,
            expires_at=expires_at,
        ).model_dump_json().encode("utf-8")

        # A second pass happens only when a stale marker was removed in the first.
        for _ in range(2):
            try:
                fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
            except FileExistsError:
                existing = self._read(path, identifier)
                if existing is not None and not existing.is_expired(now):
                    raise RequestAlreadySendingError(identifier=identifier) from None
                self._remove(path)
                continue
            except OSError as e:
                raise StorageError(
                    message=f"Failed to create marker {path}: {e}",
                    identifier=identifier,
                    cause=e,
                ) from e

            try:
                try:
                    os.write(fd, data)
                    os.fsync(fd)
                finally:
                    os.close(fd)
            except OSError as e:
                # A half-written file would read as a marker that never expires
                path.unlink(missing_ok=True)
                raise StorageError(
                    message=f"Failed to write marker {path}: {e}",
                    identifier=identifier,
                    cause=e,
                ) from e
            return

        raise RequestAlreadySendingError(identifier=identifier)

    def _read(self, path: Path, identifier: str) -> MarkerRecord | None:
        try:
            raw = path.read_bytes()
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(
                message=f"Failed to read marker {path}: {e}",
                identifier=identifier,
                cause=e,
            ) from e

        try:
            return MarkerRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("marker.unreadable", identifier=identifier, path=str(path))
            return MarkerRecord(
                identifier=identifier,
                created_at=datetime.fromtimestamp(mtime, UTC),
            )

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(
                message=f"Failed to remove marker {path}: {e}",
                cause=e,
            ) from e
        return True

    def _cleanup_sync(self) -> int:
        now = datetime.now(UTC)
        removed = 0
        for path in self.directory.glob(f"*{MARKER_SUFFIX}"):
            try:
                record = MarkerRecord.model_validate_json(path.read_bytes())
            except FileNotFoundError:
                continue
            except ValidationError:
                # Unparseable markers never expire
                continue
            if record.is_expired(now) and self._remove(path):
                removed += 1
        return removed
