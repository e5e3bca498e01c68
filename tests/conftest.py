"""Shared fixtures for the dashboard client tests."""

import pytest
import pytest_asyncio

from dashboard.app.ratelimit.limiter import ClientRateLimiter
from dashboard.app.ratelimit.telemetry import TelemetryPublisher
from dashboard.app.services.credentials import StaticCredentialProvider
from dashboard.app.services.request_client import AuthenticatedRequestClient

BASE_URL = "https://backend.test/functions/v1"


class FakeClock:
    """Controllable monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return ClientRateLimiter(requests_per_window=50, window_seconds=300, clock=clock)


@pytest.fixture
def publisher():
    return TelemetryPublisher()


@pytest.fixture
def credentials():
    return StaticCredentialProvider("test-jwt-token")


@pytest_asyncio.fixture
async def client(credentials, limiter, publisher):
    request_client = AuthenticatedRequestClient(
        base_url=BASE_URL,
        credential_provider=credentials,
        api_key="anon-key",
        rate_limiter=limiter,
        publisher=publisher,
    )
    yield request_client
    await request_client.aclose()
