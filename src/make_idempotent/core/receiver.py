"""Receiver gateway contract and helpers.

A receiver gateway is the caller's client for the remote system that performs
the mutation. It exposes the non-idempotent call and an idempotent receipt
query. Gateways decide what "inconclusive" means for their transport: any
failure after which the receiver may or may not have processed the request
must be raised as InconclusiveRequestError, never as an ordinary error.

Examples:
    A gateway for an HTTP payout API::

        class PayoutGateway:
            async def mutate(self, identifier: str, payload: dict) -> dict:
                try:
                    resp = await self.http.post(
                        "/payouts", json={"reference": identifier, **payload}
                    )
                except TransportError as e:
                    raise InconclusiveRequestError(identifier=identifier) from e
                resp.raise_for_status()
                return resp.json()

            async def query_received(self, identifier: str) -> bool:
                resp = await self.http.get(f"/payouts/by-reference/{identifier}")
                return resp.status_code == 200
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

from make_idempotent.exceptions import InconclusiveRequestError

T = TypeVar("T")


@runtime_checkable
class ReceiverGateway(Protocol):
    """Protocol for the remote system a request is delivered to."""

    async def mutate(self, identifier: str, payload: Any) -> Any:
        """Perform the non-idempotent side effect.

        Raises:
            InconclusiveRequestError: If and only if the outcome is unknown.
        """
        ...

    async def query_received(self, identifier: str) -> bool:
        """Return True if the receiver already processed ``identifier``.

        Must have no side effects.

        Raises:
            InconclusiveRequestError: If the answer cannot be determined.
        """
        ...


def inconclusive_on_timeout(
    call: Callable[..., Awaitable[T]],
    timeout_seconds: float,
) -> Callable[..., Awaitable[T]]:
    """Wrap a receiver call so a timeout is reported as inconclusive.

    A timed-out call may still have reached the receiver, so it can never be
    reported as a definite failure. The wrapped call is cancelled after
    ``timeout_seconds`` and InconclusiveRequestError is raised in its place.
    The first positional argument, when it is a string, is taken to be the
    request identifier.

    Args:
        call: The async collaborator to wrap.
        timeout_seconds: Seconds to wait before giving up.

    Returns:
        An async callable with the same signature as ``call``.

    Examples:
        >>> send_request = inconclusive_on_timeout(gateway.mutate, 5.0)
    """

    @functools.wraps(call)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await asyncio.wait_for(call(*args, **kwargs), timeout=timeout_seconds)
        except asyncio.TimeoutError as e:
            identifier = args[0] if args and isinstance(args[0], str) else None
            raise InconclusiveRequestError(
                message=f"Receiver call timed out after {timeout_seconds}s",
                identifier=identifier,
            ) from e

    return wrapper
