"""Test configuration and fixtures."""

import asyncio
import os
from collections.abc import Awaitable, Callable

import pytest
from prometheus_client import CollectorRegistry

# Set required environment variables for tests
os.environ["ENVIRONMENT"] = "testing"

from feature_gate.core.feature import Feature, FeatureRegistry
from feature_gate.core.matchers import Matcher
from feature_gate.observability.logging import setup_testing_logging
from feature_gate.observability.metrics import FeatureMetrics

setup_testing_logging()


@pytest.fixture
def registry():
    """Create an isolated feature registry."""
    return FeatureRegistry()


@pytest.fixture
def prometheus_registry():
    """Create an isolated prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(prometheus_registry):
    """Create feature metrics on an isolated registry."""
    return FeatureMetrics(prometheus_registry)


@pytest.fixture
def make_feature(registry, metrics) -> Callable[..., Feature]:
    """Factory for features bound to the isolated registry and metrics."""

    def factory(name: str, *matchers: Matcher, killswitch_override: int = 0) -> Feature:
        return Feature(
            name,
            matchers,
            killswitch_override=killswitch_override,
            registry=registry,
            metrics=metrics,
        )

    return factory


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """Poll a condition until it holds or the timeout expires."""

    async def waiter(condition: Callable[[], bool], timeout: float = 2.0) -> None:
        deadline = asyncio.get_running_loop().time() + timeout
        while not condition():
            if asyncio.get_running_loop().time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.002)

    return waiter
