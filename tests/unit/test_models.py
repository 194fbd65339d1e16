"""Unit tests for core models."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from make_idempotent.exceptions import InconclusiveRequestError
from make_idempotent.models import (
    MarkerRecord,
    RequestDescription,
    SendOutcome,
    SendResult,
)


class TestRequestDescription:
    def test_creation(self):
        description = RequestDescription(identifier="k1", payload="d1")
        assert description.identifier == "k1"
        assert description.payload == "d1"

    def test_payload_defaults_to_none(self):
        assert RequestDescription(identifier="k1").payload is None

    def test_payload_accepts_arbitrary_data(self):
        payload = {"amount": 100, "items": [1, 2]}
        assert RequestDescription(identifier="k1", payload=payload).payload == payload

    def test_empty_identifier_rejected(self):
        with pytest.raises(ValidationError):
            RequestDescription(identifier="", payload="d1")

    def test_missing_identifier_rejected(self):
        with pytest.raises(ValidationError):
            RequestDescription(payload="d1")  # type: ignore[call-arg]

    def test_is_immutable(self):
        description = RequestDescription(identifier="k1", payload="d1")
        with pytest.raises(ValidationError):
            description.identifier = "k2"  # type: ignore[misc]


class TestMarkerRecord:
    def test_without_expiry_never_expires(self):
        now = datetime.now(UTC)
        record = MarkerRecord(identifier="k1", created_at=now)
        assert not record.is_expired(now + timedelta(days=3650))

    def test_expires_at_boundary(self):
        now = datetime.now(UTC)
        record = MarkerRecord(
            identifier="k1",
            created_at=now,
            expires_at=now + timedelta(seconds=10),
        )
        assert not record.is_expired(now + timedelta(seconds=9))
        assert record.is_expired(now + timedelta(seconds=10))

    def test_expires_before_created_rejected(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            MarkerRecord(identifier="k1", created_at=now, expires_at=now - timedelta(seconds=1))

    def test_json_round_trip(self):
        now = datetime.now(UTC)
        record = MarkerRecord(identifier="k1", created_at=now, expires_at=now + timedelta(hours=1))
        assert MarkerRecord.model_validate_json(record.model_dump_json()) == record


class TestSendOutcome:
    def test_values(self):
        assert {outcome.value for outcome in SendOutcome} == {
            "SENT",
            "ALREADY_SENT",
            "ALREADY_SENDING",
            "INCONCLUSIVE",
            "FAILED",
        }

    def test_is_string_enum(self):
        assert SendOutcome.SENT == "SENT"


class TestSendResult:
    def test_sent_result(self):
        result = SendResult(identifier="k1", outcome=SendOutcome.SENT, response={"ok": True})
        assert result.response == {"ok": True}
        assert result.is_terminal
        assert not result.should_retry

    def test_sent_with_error_rejected(self):
        with pytest.raises(ValidationError):
            SendResult(
                identifier="k1",
                outcome=SendOutcome.SENT,
                error=InconclusiveRequestError(),
            )

    def test_non_sent_without_error_rejected(self):
        with pytest.raises(ValidationError):
            SendResult(identifier="k1", outcome=SendOutcome.FAILED)

    @pytest.mark.parametrize(
        "outcome,terminal,retry",
        [
            (SendOutcome.ALREADY_SENT, True, False),
            (SendOutcome.ALREADY_SENDING, False, False),
            (SendOutcome.INCONCLUSIVE, False, True),
            (SendOutcome.FAILED, False, False),
        ],
    )
    def test_flags_for_error_outcomes(self, outcome, terminal, retry):
        result = SendResult(identifier="k1", outcome=outcome, error=RuntimeError("x"))
        assert result.is_terminal is terminal
        assert result.should_retry is retry
