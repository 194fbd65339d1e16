"""Request-sending protocol.

RequestSender turns one non-idempotent request into an operation that is safe
to retry over a transport that loses requests and responses. It pairs the
request with a persistent marker keyed by the request identifier and with an
idempotent receipt check against the receiver:

    store(id) ──ok──────────────> send_request(id, payload)
        │                            ├─ ok ─────────────> return response
        │                            ├─ inconclusive ───> raise (marker kept)
        │                            └─ other error ────> unstore(id), raise
        └─already sending──> check_if_request_received(id, payload)
                                 ├─ inconclusive ───> raise (marker kept)
                                 ├─ True ───────────> unstore(id), raise already sent
                                 └─ False ──────────> raise already sending
                                                      (or resend, see SenderConfig)

A marker is never removed after a successful send. Its presence is what turns
a late duplicate send into RequestAlreadySentError instead of a second
mutation.

Preconditions (not checked):
    - At most one send() per identifier is in flight at any time, across all
      processes.
    - send() is not called again for an identifier after a call for it
      returned a response.

Even under these preconditions the guarantee is exactly-once effect as seen
by the caller, not exactly-once delivery. If the receiver needs a strong
guarantee it has to be idempotent itself.

Examples:
    Sending with a retry loop::

        from make_idempotent import (
            InconclusiveRequestError,
            MemoryMarkerStore,
            RequestAlreadySentError,
            RequestDescription,
            RequestSender,
        )

        markers = MemoryMarkerStore()
        sender = RequestSender(
            send_request=gateway.mutate,
            check_if_request_received=lambda id, _: gateway.query_received(id),
            store=markers.store,
            unstore=markers.unstore,
        )

        description = RequestDescription(identifier="k1", payload="d1")
        while True:
            try:
                response = await sender.send(description)
                break
            except RequestAlreadySentError:
                break
            except InconclusiveRequestError:
                await asyncio.sleep(1)
"""

from collections.abc import Awaitable, Callable
from typing import Any

from make_idempotent.config import SenderConfig
from make_idempotent.exceptions import (
    InconclusiveRequestError,
    RequestAlreadySendingError,
    RequestAlreadySentError,
)
from make_idempotent.models import RequestDescription, SendOutcome, SendResult
from make_idempotent.observability.logging import get_logger
from make_idempotent.observability.metrics import record_send

logger = get_logger(__name__)

SendRequest = Callable[[str, Any], Awaitable[Any]]
CheckIfRequestReceived = Callable[[str, Any], Awaitable[bool]]
StoreMarker = Callable[[str], Awaitable[None]]
UnstoreMarker = Callable[[str], Awaitable[None]]


def classify_error(error: BaseException) -> SendOutcome:
    """Map an exception raised by RequestSender.send to its outcome."""
    if isinstance(error, RequestAlreadySentError):
        return SendOutcome.ALREADY_SENT
    if isinstance(error, RequestAlreadySendingError):
        return SendOutcome.ALREADY_SENDING
    if isinstance(error, InconclusiveRequestError):
        return SendOutcome.INCONCLUSIVE
    return SendOutcome.FAILED


class RequestSender:
    """Sends one kind of request with retry-safe, exactly-once effect.

    Args:
        send_request: Performs the request. Must raise
            InconclusiveRequestError if and only if it cannot tell whether
            the receiver processed the request (e.g. a timeout).
        check_if_request_received: Returns whether the receiver already
            processed the request. Must be side-effect free and raise
            InconclusiveRequestError under the same rule as send_request.
        store: Atomically persists a marker for the identifier. Must raise
            RequestAlreadySendingError if one already exists.
        unstore: Removes the marker for the identifier. Must succeed when
            there is none.
        config: Sender configuration. Only ``unreceived_policy`` is read.
    """

    def __init__(
        self,
        send_request: SendRequest,
        check_if_request_received: CheckIfRequestReceived,
        store: StoreMarker,
        unstore: UnstoreMarker,
        config: SenderConfig | None = None,
    ) -> None:
        self._send_request = send_request
        self._check_if_request_received = check_if_request_received
        self._store = store
        self._unstore = unstore
        self.config = config or SenderConfig()

    async def send(self, description: RequestDescription) -> Any:
        """Send the request described by ``description``.

        Returns:
            The response returned by send_request.

        Raises:
            RequestAlreadySentError: The receiver already has the request.
                Stop retrying this identifier.
            InconclusiveRequestError: The outcome is unknown. Retry with the
                same description.
            RequestAlreadySendingError: A marker exists and the receiver has
                not seen the request; another attempt may be in flight.
            Exception: Any other collaborator error, unchanged.
        """
        try:
            response = await self._send(description)
        except Exception as e:
            record_send(classify_error(e))
            raise
        record_send(SendOutcome.SENT)
        return response

    async def attempt(self, description: RequestDescription) -> SendResult:
        """Like send(), but report every outcome as a SendResult.

        Errors of any kind are returned in ``SendResult.error`` with the
        outcome they classify as, instead of being raised.
        """
        try:
            response = await self.send(description)
        except Exception as e:
            return SendResult(
                identifier=description.identifier,
                outcome=classify_error(e),
                error=e,
            )
        return SendResult(
            identifier=description.identifier,
            outcome=SendOutcome.SENT,
            response=response,
        )

    async def _send(self, description: RequestDescription) -> Any:
        log = logger.bind(identifier=description.identifier)

        try:
            await self._store(description.identifier)
        except RequestAlreadySendingError as already_sending:
            await self._reconcile(description, already_sending, log)
        else:
            log.debug("send.claimed")

        return await self._mutate(description, log)

    async def _reconcile(
        self,
        description: RequestDescription,
        already_sending: RequestAlreadySendingError,
        log: Any,
    ) -> None:
        """Resolve an existing marker against the receiver.

        Returns only when the request should be sent again under the
        existing claim; every other branch raises.
        """
        identifier = description.identifier

        try:
            received = await self._check_if_request_received(identifier, description.payload)
        except InconclusiveRequestError:
            log.info("send.reconcile_inconclusive")
            raise

        if received:
            try:
                await self._unstore(identifier)
            except Exception as e:
                log.warning(
                    "send.unstore_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise RequestAlreadySentError(identifier=identifier) from e
            log.info("send.already_sent")
            raise RequestAlreadySentError(identifier=identifier)

        if self.config.unreceived_policy == "resend":
            log.info("send.resending")
            return

        log.warning("send.already_sending")
        raise already_sending

    async def _mutate(self, description: RequestDescription, log: Any) -> Any:
        identifier = description.identifier

        try:
            response = await self._send_request(identifier, description.payload)
        except InconclusiveRequestError:
            log.info("send.inconclusive")
            raise
        except Exception as e:
            # The request definitely did not go through, so a retry may start over
            log.warning(
                "send.failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            await self._unstore(identifier)
            raise

        log.info("send.completed")
        return response
