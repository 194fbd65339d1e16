"""Core type definitions for the request-sending protocol.

This module provides the data structures shared by the protocol, the marker
stores and callers: the description of a request, the persisted marker record,
and the closed set of outcomes a send can end in.

Examples:
    Describing a request::

        from make_idempotent.models import RequestDescription

        description = RequestDescription(
            identifier="payout-2023-12-15-user-42",
            payload={"amount": 1000, "currency": "USD"},
        )

    Matching on an outcome::

        result = await sender.attempt(description)

        match result.outcome:
            case SendOutcome.SENT:
                handle(result.response)
            case SendOutcome.ALREADY_SENT:
                pass
            case SendOutcome.INCONCLUSIVE:
                schedule_retry(description)
            case SendOutcome.ALREADY_SENDING | SendOutcome.FAILED:
                alert(result.error)
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class RequestDescription(BaseModel):
    """A single logical mutation: who it is and what it carries.

    The identifier must be unique per logical mutation and stable across
    every retry of that mutation; it keys the marker store and the receiver's
    receipt check. The payload is passed to the mutating call untouched.

    Instances are immutable. The protocol never modifies or retains a
    description beyond the call it was passed to.

    Attributes:
        identifier: Caller-chosen key naming this mutation across retries.
        payload: Arbitrary data handed to ``send_request``.
    """

    identifier: str = Field(
        ...,
        description="Caller-chosen key naming one logical mutation",
        min_length=1,
        examples=["k1", "payout-2023-12-15-user-42"],
    )
    payload: Any = Field(
        default=None,
        description="Data passed to the mutating call",
        examples=["d1", {"amount": 1000}],
    )

    model_config = {"frozen": True}


class MarkerRecord(BaseModel):
    """A persisted "send attempt in flight" marker.

    Bundled marker stores keep one record per identifier. A record without an
    ``expires_at`` never expires.

    Attributes:
        identifier: The request identifier the marker claims.
        created_at: When the marker was stored.
        expires_at: When the marker stops counting as present, if ever.
    """

    identifier: str = Field(..., min_length=1)
    created_at: datetime
    expires_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def validate_expires_after_created(cls, v: datetime | None, info: Any) -> datetime | None:
        """Validate that expires_at is after created_at.

        Raises:
            ValueError: If expires_at is not after created_at.
        """
        if v is not None and "created_at" in info.data and v <= info.data["created_at"]:
            raise ValueError("expires_at must be after created_at")
        return v

    def is_expired(self, now: datetime) -> bool:
        """Return True if the marker has expired as of ``now``."""
        return self.expires_at is not None and self.expires_at <= now


class SendOutcome(str, Enum):
    """How a single send attempt ended.

    Attributes:
        SENT: The mutation completed and returned a response.
        ALREADY_SENT: Reconciliation found the receiver already has the
            request. Terminal.
        ALREADY_SENDING: A marker exists and reconciliation could not prove
            receipt. Not retried by the protocol.
        INCONCLUSIVE: A receiver call had an unknown outcome. Retry with the
            same description.
        FAILED: Any other error, propagated after cleanup.
    """

    SENT = "SENT"
    ALREADY_SENT = "ALREADY_SENT"
    ALREADY_SENDING = "ALREADY_SENDING"
    INCONCLUSIVE = "INCONCLUSIVE"
    FAILED = "FAILED"


class SendResult(BaseModel):
    """Outcome of one send attempt, as a value instead of an exception.

    Exactly one of ``response`` (for ``SENT``) or ``error`` (for every other
    outcome) is meaningful.

    Attributes:
        identifier: The identifier of the attempted request.
        outcome: Which case of ``SendOutcome`` the attempt ended in.
        response: The receiver's response when outcome is ``SENT``.
        error: The exception the attempt ended with, otherwise.
    """

    identifier: str
    outcome: SendOutcome
    response: Any = None
    error: Exception | None = None

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @model_validator(mode="after")
    def validate_error_with_outcome(self) -> "SendResult":
        """Validate that error is present if and only if the send did not succeed.

        Raises:
            ValueError: If outcome/error consistency is violated.
        """
        sent = self.outcome == SendOutcome.SENT
        if sent and self.error is not None:
            raise ValueError("error must be None when outcome is SENT")
        if not sent and self.error is None:
            raise ValueError("error must be provided unless outcome is SENT")
        return self

    @property
    def is_terminal(self) -> bool:
        """True when the caller must stop retrying this identifier."""
        return self.outcome in (SendOutcome.SENT, SendOutcome.ALREADY_SENT)

    @property
    def should_retry(self) -> bool:
        """True when re-sending the same description is the right next step."""
        return self.outcome == SendOutcome.INCONCLUSIVE
