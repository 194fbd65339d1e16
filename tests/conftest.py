"""
Pytest configuration and shared fixtures for make_idempotent tests.
"""

import pytest
from fakes import FakeReceiver

from make_idempotent.config import SenderConfig
from make_idempotent.core.sender import RequestSender
from make_idempotent.models import RequestDescription
from make_idempotent.observability.logging import configure_logging
from make_idempotent.storage.memory import MemoryMarkerStore


@pytest.fixture(autouse=True, scope="session")
def quiet_logging() -> None:
    """Keep per-attempt info logs out of test output."""
    configure_logging(SenderConfig(log_level="WARNING", json_logs=False))


@pytest.fixture
def sample_description() -> RequestDescription:
    """Provide the description used by the end-to-end scenario."""
    return RequestDescription(identifier="k1", payload="d1")


@pytest.fixture
def markers() -> MemoryMarkerStore:
    """Provide a fresh in-memory marker store."""
    return MemoryMarkerStore()


@pytest.fixture
def receiver() -> FakeReceiver:
    """Provide a fresh, reliable receiver."""
    return FakeReceiver()


@pytest.fixture
def sender(markers: MemoryMarkerStore, receiver: FakeReceiver) -> RequestSender:
    """Provide a sender wired to the reliable receiver and marker store."""
    return RequestSender(
        send_request=receiver.mutate,
        check_if_request_received=receiver.check_if_request_received,
        store=markers.store,
        unstore=markers.unstore,
    )
