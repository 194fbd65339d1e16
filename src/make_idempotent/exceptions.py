"""Exception hierarchy for the request-sending protocol.

Every error the protocol raises on its own behalf belongs to one of the
classes below. Collaborators (marker stores, receiver gateways) raise the same
classes to report the conditions the protocol routes on:

- ``RequestAlreadySendingError``: ``store`` found a marker for the identifier.
- ``InconclusiveRequestError``: a receiver call could not tell whether the
  receiver processed the request (typically a timeout).

The protocol itself raises ``RequestAlreadySentError`` when reconciliation
proves the receiver already holds the request's effect.

Examples:
    Driving a retry loop::

        from make_idempotent.exceptions import (
            InconclusiveRequestError,
            RequestAlreadySentError,
        )

        while True:
            try:
                response = await sender.send(description)
                break
            except RequestAlreadySentError:
                break
            except InconclusiveRequestError:
                await asyncio.sleep(backoff)

    Reporting an unknown outcome from a gateway::

        try:
            return await client.post(url, json=payload, timeout=5)
        except TimeoutError as e:
            raise InconclusiveRequestError(
                message=f"POST {url} timed out",
                identifier=identifier,
            ) from e
"""


class MakeIdempotentError(Exception):
    """Base exception for all errors raised by this package.

    Attributes:
        message: Human-readable error description.
        identifier: The request identifier involved, when known.
    """

    default_message = "Request protocol error"

    def __init__(self, message: str | None = None, identifier: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description. Falls back to the
                class default, mentioning the identifier when one is given.
            identifier: The request identifier involved, when known.
        """
        if message is None:
            message = self.default_message
            if identifier is not None:
                message = f"{message}: {identifier}"
        self.message = message
        self.identifier = identifier
        super().__init__(message)


class RequestAlreadySendingError(MakeIdempotentError):
    """A marker already exists for this identifier.

    Raised by ``store`` when an insert finds an existing marker. The protocol
    catches it and reconciles against the receiver; if reconciliation cannot
    prove the request was received, the original error is re-raised to the
    caller unchanged. It is not a retry recommendation: another attempt for
    the same identifier may still be in flight.

    Examples:
        Raising from a marker store::

            if identifier in self._markers:
                raise RequestAlreadySendingError(identifier=identifier)
    """

    default_message = "A request is already being sent for identifier"


class RequestAlreadySentError(MakeIdempotentError):
    """The receiver already holds this identifier's effect.

    This is a terminal signal. The mutation took effect exactly once on an
    earlier attempt; callers should treat it as success and stop retrying the
    identifier.
    """

    default_message = "Request was already sent for identifier"


class InconclusiveRequestError(MakeIdempotentError):
    """The outcome of a receiver call is unknown.

    Raised by ``send_request`` or ``check_if_request_received`` when they
    cannot tell whether the receiver processed the request, e.g. the request
    was sent but the response was lost. Never raise it for a definite
    failure. Callers retry by calling ``send`` again with the same
    description; the marker left in the store routes the retry through
    reconciliation.
    """

    default_message = "Could not determine whether the request was received"


class StorageError(MakeIdempotentError):
    """A marker store backend operation failed.

    Raised by the bundled marker stores when the underlying backend (e.g. the
    filesystem) fails for a reason other than the marker already existing.
    The protocol propagates it unchanged like any other fatal error.

    Attributes:
        cause: The underlying exception, if any.

    Examples:
        Wrapping a backend failure::

            try:
                os.remove(path)
            except PermissionError as e:
                raise StorageError(
                    message=f"Failed to remove marker {path}: {e}",
                    cause=e,
                ) from e
    """

    default_message = "Marker store operation failed"

    def __init__(
        self,
        message: str | None = None,
        identifier: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the storage error.

        Args:
            message: Human-readable error description.
            identifier: The request identifier involved, when known.
            cause: The underlying exception that caused the storage error.
        """
        super().__init__(message, identifier)
        self.cause = cause
