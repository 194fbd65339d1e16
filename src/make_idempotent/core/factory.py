"""Factory binding one marker store to many kinds of request.

An application usually keeps a single persistent marker store and sends
several different kinds of request through it. RequestSenderFactory captures
the store's ``store``/``unstore`` pair once and hands out RequestSender
instances for each send/check pair.

Examples:
    Sharing a store between two gateways::

        from make_idempotent import RequestSenderFactory, SenderConfig
        from make_idempotent.storage import create_marker_store

        config = SenderConfig(marker_store="file", call_timeout_seconds=5)
        factory = RequestSenderFactory.from_marker_store(
            create_marker_store(config), config=config
        )

        payouts = factory.make_request_sender_for(payout_gateway)
        emails = factory.make_request_sender(
            send_request=mailer.send,
            check_if_request_received=mailer.was_sent,
        )
"""

from typing import Any

from make_idempotent.config import SenderConfig
from make_idempotent.core.receiver import ReceiverGateway, inconclusive_on_timeout
from make_idempotent.core.sender import (
    CheckIfRequestReceived,
    RequestSender,
    SendRequest,
    StoreMarker,
    UnstoreMarker,
)
from make_idempotent.storage.base import MarkerStore


class RequestSenderFactory:
    """Produces RequestSenders sharing one ``store``/``unstore`` pair.

    When ``config.call_timeout_seconds`` is set, both receiver calls of every
    sender produced are wrapped with inconclusive_on_timeout.
    """

    def __init__(
        self,
        store: StoreMarker,
        unstore: UnstoreMarker,
        config: SenderConfig | None = None,
    ) -> None:
        self._store = store
        self._unstore = unstore
        self.config = config or SenderConfig()

    @classmethod
    def from_marker_store(
        cls,
        marker_store: MarkerStore,
        config: SenderConfig | None = None,
    ) -> "RequestSenderFactory":
        """Create a factory bound to a MarkerStore's methods."""
        return cls(store=marker_store.store, unstore=marker_store.unstore, config=config)

    def make_request_sender(
        self,
        send_request: SendRequest,
        check_if_request_received: CheckIfRequestReceived,
    ) -> RequestSender:
        """Create a RequestSender for one send/check pair."""
        timeout = self.config.call_timeout_seconds
        if timeout is not None:
            send_request = inconclusive_on_timeout(send_request, timeout)
            check_if_request_received = inconclusive_on_timeout(check_if_request_received, timeout)

        return RequestSender(
            send_request=send_request,
            check_if_request_received=check_if_request_received,
            store=self._store,
            unstore=self._unstore,
            config=self.config,
        )

    def make_request_sender_for(self, gateway: ReceiverGateway) -> RequestSender:
        """Create a RequestSender for a ReceiverGateway."""

        async def check_if_request_received(identifier: str, payload: Any) -> bool:
            return await gateway.query_received(identifier)

        return self.make_request_sender(
            send_request=gateway.mutate,
            check_if_request_received=check_if_request_received,
        )
