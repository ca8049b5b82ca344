"""Pytest fixtures for the carrier pipeline tests."""

import pytest

from carrier_gateway.integrations.clients.mocks.mock_carrier import MockCarrier
from carrier_gateway.integrations.contracts.policy import Credentials
from carrier_gateway.integrations.policy.retry_policy import RetryPolicy
from carrier_gateway.utils.config_loader import GatewayConfig


class SleepRecorder:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def retry_policy(sleeps):
    return RetryPolicy(max_attempts=3, sleep=sleeps)


@pytest.fixture
def mock_carrier():
    return MockCarrier(username="jdoe", password="s3cret")


@pytest.fixture
def credentials():
    return Credentials(username="jdoe", password="s3cret")


@pytest.fixture
def gateway_config(mock_carrier):
    return GatewayConfig(carriers={"mock-carrier": mock_carrier.config()})
