"""
Retry-safe sending of non-idempotent requests.

This package pairs a non-idempotent request with a persistent in-flight marker
and an idempotent receipt check, so the request can be retried over an
unreliable transport and still take effect at most once.
"""

from make_idempotent.config import SenderConfig
from make_idempotent.core.factory import RequestSenderFactory
from make_idempotent.core.receiver import ReceiverGateway, inconclusive_on_timeout
from make_idempotent.core.sender import RequestSender
from make_idempotent.exceptions import (
    InconclusiveRequestError,
    MakeIdempotentError,
    RequestAlreadySendingError,
    RequestAlreadySentError,
    StorageError,
)
from make_idempotent.models import RequestDescription, SendOutcome, SendResult
from make_idempotent.storage import FileMarkerStore, MarkerStore, MemoryMarkerStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "RequestSender",
    "RequestSenderFactory",
    "ReceiverGateway",
    "inconclusive_on_timeout",
    "RequestDescription",
    "SendOutcome",
    "SendResult",
    "SenderConfig",
    "MarkerStore",
    "MemoryMarkerStore",
    "FileMarkerStore",
    "MakeIdempotentError",
    "RequestAlreadySendingError",
    "RequestAlreadySentError",
    "InconclusiveRequestError",
    "StorageError",
]
