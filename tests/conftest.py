"""Pytest fixtures for shopfast tests."""

import random

import pytest
from fastapi.testclient import TestClient

from shopfast.config import ZERO_LATENCY, LatencyRange, Settings
from shopfast.scheduler import VirtualClockScheduler
from shopfast.shop import Shop


@pytest.fixture
def settings():
    """Settings with no simulated latency and the default 1s confirmation delay."""
    return Settings(
        confirmation_delay_ms=1000,
        payment_latency=ZERO_LATENCY,
        processing_display=LatencyRange(500, 1500),
        totals_latency=ZERO_LATENCY,
        featured_latency=ZERO_LATENCY,
    )


@pytest.fixture
def clock():
    """Virtual clock driving order confirmations."""
    return VirtualClockScheduler()


@pytest.fixture
def shop(settings, clock):
    """A freshly seeded shop."""
    return Shop.seeded(settings, scheduler=clock, rng=random.Random(1234))


@pytest.fixture
def catalog(shop):
    return shop.catalog


@pytest.fixture
def accounts(shop):
    return shop.accounts


@pytest.fixture
def cart(shop):
    return shop.cart


@pytest.fixture
def orders(shop):
    return shop.orders


@pytest.fixture
def checkout(shop):
    return shop.checkout


@pytest.fixture
def api_client(shop):
    """Test client over an app bound to the fixture shop."""
    from shopfast.api import create_app

    return TestClient(create_app(shop))
