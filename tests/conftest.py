"""
Shared fixtures.

Every test gets its own store and app, with latency and dropped reads
switched off and payments that always go through. Tests that need
failures build their own FaultInjector or PaymentService.
"""

import pytest
from fastapi.testclient import TestClient

from bugboy.capture import capture
from bugboy.config import Settings
from bugboy.faults import FaultInjector
from bugboy.main import create_app
from bugboy.services import PaymentService
from bugboy.store import MockStore


@pytest.fixture(autouse=True)
def no_error_capture():
    """The capture client is a module singleton; keep it off between tests."""
    capture.shutdown()
    yield
    capture.shutdown()


@pytest.fixture
def settings():
    return Settings(capture_enabled=False, payment_decline_rate=0.0, log_level="WARNING")


@pytest.fixture
def faults():
    return FaultInjector.disabled()


@pytest.fixture
def store(faults):
    return MockStore(faults)


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def declining_client(settings, store, faults):
    """Every payment is declined."""
    app = create_app(
        settings=settings,
        store=store,
        payments=PaymentService(faults, decline_rate=1.0),
    )
    with TestClient(app) as c:
        yield c
