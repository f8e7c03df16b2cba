"""Shared fixtures for the qbit-client test suite."""

import pytest

from qbit_client import Credentials, QbitAsyncClient, QbitClient, QbitConfig


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def valid_config() -> QbitConfig:
    """Valid configuration for testing."""
    return QbitConfig(
        credentials=Credentials("admin", "123456"),
        base_url="http://localhost:8080/",
        timeout=10.0,
        debug=True,
    )


@pytest.fixture
def sync_client(valid_config: QbitConfig, clock: FakeClock):
    """Create sync client for testing."""
    client = QbitClient(valid_config, clock=clock)
    yield client
    client.close()


@pytest.fixture
def async_client(valid_config: QbitConfig, clock: FakeClock) -> QbitAsyncClient:
    """Create async client for testing."""
    return QbitAsyncClient(valid_config, clock=clock)
