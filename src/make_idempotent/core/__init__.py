"""Core logic of the request-sending protocol.

- Sender: the store / send / reconcile state machine
- Factory: one marker store shared by many request kinds
- Receiver: gateway contract and timeout reclassification
- Cleanup: TTL-based marker expiry
"""

from make_idempotent.core.factory import RequestSenderFactory
from make_idempotent.core.receiver import ReceiverGateway, inconclusive_on_timeout
from make_idempotent.core.sender import RequestSender, classify_error

__all__ = [
    "RequestSender",
    "RequestSenderFactory",
    "ReceiverGateway",
    "classify_error",
    "inconclusive_on_timeout",
]
