"""Unit tests for the receiver gateway contract and timeout wrapper."""

import asyncio

import pytest
from fakes import FakeReceiver

from make_idempotent.core.receiver import ReceiverGateway, inconclusive_on_timeout
from make_idempotent.exceptions import InconclusiveRequestError


class TestReceiverGatewayProtocol:
    def test_fake_receiver_satisfies_protocol(self):
        assert isinstance(FakeReceiver(), ReceiverGateway)

    def test_object_without_query_does_not_satisfy_protocol(self):
        class MutateOnly:
            async def mutate(self, identifier, payload):
                return None

        assert not isinstance(MutateOnly(), ReceiverGateway)


class TestInconclusiveOnTimeout:
    @pytest.mark.asyncio
    async def test_fast_call_returns_result(self):
        async def call(identifier, payload):
            return (identifier, payload)

        wrapped = inconclusive_on_timeout(call, 1.0)
        assert await wrapped("a", 1) == ("a", 1)

    @pytest.mark.asyncio
    async def test_timeout_becomes_inconclusive(self):
        async def call(identifier, payload):
            await asyncio.sleep(10)

        wrapped = inconclusive_on_timeout(call, 0.01)

        with pytest.raises(InconclusiveRequestError) as exc_info:
            await wrapped("req-7", None)

        assert exc_info.value.identifier == "req-7"
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_other_errors_pass_through(self):
        async def call(identifier, payload):
            raise ValueError("bad payload")

        wrapped = inconclusive_on_timeout(call, 1.0)

        with pytest.raises(ValueError, match="bad payload"):
            await wrapped("a", None)

    @pytest.mark.asyncio
    async def test_keyword_call_has_no_identifier(self):
        async def call(identifier, payload):
            await asyncio.sleep(10)

        wrapped = inconclusive_on_timeout(call, 0.01)

        with pytest.raises(InconclusiveRequestError) as exc_info:
            await wrapped(identifier="a", payload=None)

        assert exc_info.value.identifier is None

    def test_wrapper_keeps_name(self):
        async def send_payout(identifier, payload):
            return None

        assert inconclusive_on_timeout(send_payout, 1.0).__name__ == "send_payout"
