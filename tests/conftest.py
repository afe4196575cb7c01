"""
Test bootstrap:
- Make tests/helpers importable from every test module
- Provide shared fixtures for the fake transport and client
"""
import sys
import pathlib
import pytest

TESTS_DIR = pathlib.Path(__file__).parent.resolve()

if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from helpers import FakeTransport  # noqa: E402

from pivotal_client import ClientConfig, PivotalClient  # noqa: E402


@pytest.fixture
def fake_transport():
    """Provide an empty scripted transport."""
    return FakeTransport()


@pytest.fixture
def client(fake_transport):
    """Provide a client whose transport is the scripted fake."""
    tracker = PivotalClient(ClientConfig(token="test-token", account_id=42))
    tracker.transport.close()
    tracker.transport = fake_transport
    return tracker
