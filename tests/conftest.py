"""
Pytest configuration for rangeoracle tests.

Configures pytest-asyncio for async test support and provides an
in-memory service wired to a fast-polling checker.
"""

import random
import tempfile
from typing import Generator

import pytest

from rangeoracle.logging import LoggingConfig
from rangeoracle.models import KeyRange, prefix_range
from rangeoracle.oracle import InvariantChecker, RangeStateTracker
from rangeoracle.service import (
    InMemoryRangeService,
    InMemoryServiceConfig,
    RangeServiceClient,
)


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[None, None, None]:
    config = LoggingConfig()
    config.update(log_level="critical")
    yield
    config.update(log_level="info")


@pytest.fixture
def temp_log_directory() -> Generator[str, None, None]:
    with tempfile.TemporaryDirectory() as temp_directory:
        yield temp_directory


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def service() -> InMemoryRangeService:
    return InMemoryRangeService(seed=1234)


@pytest.fixture
def lagging_service() -> InMemoryRangeService:
    return InMemoryRangeService(
        InMemoryServiceConfig(convergence_lag=0.05),
        seed=1234,
    )


@pytest.fixture
def client(service: InMemoryRangeService) -> RangeServiceClient:
    return RangeServiceClient(service)


@pytest.fixture
def checker(client: RangeServiceClient) -> InvariantChecker:
    return InvariantChecker(
        client,
        poll_interval=0.01,
        convergence_timeout=1.0,
    )


@pytest.fixture
def tracker(rng: random.Random) -> RangeStateTracker:
    return RangeStateTracker(rng)


@pytest.fixture
def target_range() -> KeyRange:
    return prefix_range(b"U_0000002a")
