"""
Pytest fixtures for the yard display booking tests.

Every test runs against in-memory backends; Postgres code paths are
exercised with mocked PostgresDB objects.
"""
import os
import random
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment before importing app
os.environ['FLASK_ENV'] = 'testing'
os.environ['APP_STAGE'] = 'test'
os.environ['HOLD_STORE_BACKEND'] = 'memory'
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ['CRON_TOKEN'] = 'test-cron-token'
os.environ.pop('RATELIMIT_ENABLED', None)

TENANT = "agency-1"


class FakeClock:
    """Callable clock the ledger reads; tests move it forward explicitly."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def tenant_id():
    return TENANT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    from services.catalog import MemorySignCatalog
    return MemorySignCatalog()


@pytest.fixture
def hold_store():
    from services.hold_store import MemoryHoldStore
    return MemoryHoldStore()


@pytest.fixture
def ledger(catalog, hold_store, clock):
    from services.inventory import InventoryLedger
    return InventoryLedger(catalog, hold_store, clock=clock)


@pytest.fixture
def selector(catalog):
    from services.sign_selection import SignSelectionEngine
    return SignSelectionEngine(catalog)


@pytest.fixture
def calculator(selector):
    from services.layout_calculator import LayoutCalculator
    return LayoutCalculator(selector=selector, rng=random.Random(7))


@pytest.fixture(autouse=True)
def reset_backends():
    """Process-wide memory backends start empty for every test."""
    from services.booking import reset_memory_backends
    reset_memory_backends()
    yield
    reset_memory_backends()


@pytest.fixture
def app():
    """Create application for testing."""
    from app import create_app
    flask_app = create_app({'TESTING': True})
    return flask_app


@pytest.fixture
def client(app):
    """Create a test client for the app."""
    return app.test_client()
