"""Property-based tests for RequestSender.

The receiver sits behind a simulated network that loses requests and
responses with hypothesis-chosen probabilities. Whatever the probabilities
and the random seed, a caller that retries on every inconclusive outcome
must end with the receiver holding the payload exactly once.
"""

import pytest
from fakes import FlakyReceiver, send_until_settled
from hypothesis import given, settings
from hypothesis import strategies as st

from make_idempotent.config import SenderConfig
from make_idempotent.core.sender import RequestSender
from make_idempotent.exceptions import InconclusiveRequestError
from make_idempotent.models import RequestDescription, SendOutcome
from make_idempotent.storage.memory import MemoryMarkerStore

# Strategies
loss_strategy = st.floats(min_value=0.0, max_value=0.9)
seed_strategy = st.integers(min_value=0, max_value=2**32 - 1)
identifier_strategy = st.text(min_size=1, max_size=64)
payload_strategy = st.one_of(
    st.text(max_size=32),
    st.integers(),
    st.dictionaries(st.text(max_size=8), st.integers(), max_size=4),
)


def make_sender(
    receiver: FlakyReceiver,
    markers: MemoryMarkerStore,
    config: SenderConfig | None = None,
) -> RequestSender:
    return RequestSender(
        send_request=receiver.mutate,
        check_if_request_received=receiver.check_if_request_received,
        store=markers.store,
        unstore=markers.unstore,
        config=config,
    )


class TestExactlyOnceEffect:
    @pytest.mark.asyncio
    @settings(max_examples=50, deadline=None)
    @given(
        request_loss=loss_strategy,
        response_loss=loss_strategy,
        seed=seed_strategy,
        identifier=identifier_strategy,
        payload=payload_strategy,
    )
    async def test_resend_policy_converges_under_any_loss(
        self,
        request_loss: float,
        response_loss: float,
        seed: int,
        identifier: str,
        payload: object,
    ) -> None:
        """Lost requests and lost responses both converge to one effect."""
        receiver = FlakyReceiver(request_loss, response_loss, seed=seed)
        markers = MemoryMarkerStore()
        sender = make_sender(receiver, markers, SenderConfig(unreceived_policy="resend"))

        result, _ = await send_until_settled(
            sender, RequestDescription(identifier=identifier, payload=payload)
        )

        assert result.is_terminal
        assert receiver.data == [payload]

    @pytest.mark.asyncio
    @settings(max_examples=50, deadline=None)
    @given(
        response_loss=loss_strategy,
        seed=seed_strategy,
        identifier=identifier_strategy,
    )
    async def test_default_policy_converges_when_only_responses_are_lost(
        self,
        response_loss: float,
        seed: int,
        identifier: str,
    ) -> None:
        """With requests always arriving, the default policy never needs to resend."""
        receiver = FlakyReceiver(0.0, response_loss, seed=seed)
        markers = MemoryMarkerStore()
        sender = make_sender(receiver, markers)

        result, _ = await send_until_settled(
            sender, RequestDescription(identifier=identifier, payload="d1")
        )

        assert result.outcome in (SendOutcome.SENT, SendOutcome.ALREADY_SENT)
        assert receiver.data == ["d1"]

    @pytest.mark.asyncio
    @settings(max_examples=50, deadline=None)
    @given(
        request_loss=loss_strategy,
        response_loss=loss_strategy,
        seed=seed_strategy,
    )
    async def test_late_duplicate_after_success_is_already_sent(
        self,
        request_loss: float,
        response_loss: float,
        seed: int,
    ) -> None:
        """A duplicate send after a successful one resolves to already sent."""
        receiver = FlakyReceiver(request_loss, response_loss, seed=seed)
        markers = MemoryMarkerStore()
        sender = make_sender(receiver, markers, SenderConfig(unreceived_policy="resend"))
        description = RequestDescription(identifier="dup", payload="d1")

        first, _ = await send_until_settled(sender, description)
        if first.outcome == SendOutcome.SENT:
            duplicate, _ = await send_until_settled(sender, description)
            assert duplicate.outcome == SendOutcome.ALREADY_SENT

        assert receiver.data == ["d1"]


class TestMarkerInvariants:
    @pytest.mark.asyncio
    @settings(max_examples=50, deadline=None)
    @given(
        request_loss=loss_strategy,
        response_loss=loss_strategy,
        seed=seed_strategy,
    )
    async def test_marker_state_after_each_attempt(
        self,
        request_loss: float,
        response_loss: float,
        seed: int,
    ) -> None:
        """Success and inconclusive leave the marker; already-sent removes it."""
        receiver = FlakyReceiver(request_loss, response_loss, seed=seed)
        markers = MemoryMarkerStore()
        sender = make_sender(receiver, markers, SenderConfig(unreceived_policy="resend"))
        description = RequestDescription(identifier="m", payload=1)

        for _ in range(10_000):
            before = await markers.get("m")
            result = await sender.attempt(description)
            after = await markers.get("m")

            assert markers.marker_count() <= 1
            if result.outcome == SendOutcome.SENT:
                assert after is not None
                break
            if result.outcome == SendOutcome.ALREADY_SENT:
                assert after is None
                break
            assert result.outcome == SendOutcome.INCONCLUSIVE
            assert isinstance(result.error, InconclusiveRequestError)
            assert after is not None
            if before is not None:
                # An existing claim is reused, never replaced
                assert after is before
        else:
            pytest.fail("send did not settle")
