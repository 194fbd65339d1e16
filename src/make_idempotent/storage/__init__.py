"""Marker stores for the request-sending protocol.

All stores implement the MarkerStore protocol defined in base.py.

Available Stores:
    - MemoryMarkerStore: In-memory store for single processes and tests
    - FileMarkerStore: One file per marker, survives restarts on one host
"""

from make_idempotent.config import SenderConfig
from make_idempotent.storage.base import MarkerStore
from make_idempotent.storage.file import FileMarkerStore
from make_idempotent.storage.memory import MemoryMarkerStore


def create_marker_store(config: SenderConfig) -> MarkerStore:
    """Create the marker store selected by ``config.marker_store``."""
    if config.marker_store == "file":
        return FileMarkerStore(config.marker_storage_path, ttl_seconds=config.marker_ttl_seconds)
    return MemoryMarkerStore(ttl_seconds=config.marker_ttl_seconds)


__all__ = [
    "MarkerStore",
    "MemoryMarkerStore",
    "FileMarkerStore",
    "create_marker_store",
]
