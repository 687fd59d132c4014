"""
Shared pytest fixtures for the order notifier tests.

These fixtures provide consistent test data and reset state between tests.
"""

import pytest
from pathlib import Path
from typing import Optional

from marketplace.channels import MockPushChannel
from marketplace.data_store import DataStore
from marketplace.exceptions import UserLookupError
from marketplace.models import User
from marketplace.settings import reset_settings
from triggers.change_feed import reset_change_feed
from triggers.dispatcher import Dispatcher


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Tests never pick up FARM_NOTIFY_* variables from the developer's shell."""
    for var in (
        "FARM_NOTIFY_USER_BACKEND",
        "FARM_NOTIFY_PUSH_BACKEND",
        "FARM_NOTIFY_DATA_DIR",
        "FARM_NOTIFY_DISPATCH_MAX_WORKERS",
    ):
        monkeypatch.delenv(var, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def data_dir() -> Path:
    """Path to the fixture data directory."""
    return Path(__file__).parent.parent / "data"


@pytest.fixture
def data_store(data_dir: Path) -> DataStore:
    """
    Fresh DataStore instance for each test.

    Uses the real JSON fixtures but creates a new instance
    so tests don't interfere with each other.
    """
    return DataStore(data_dir=data_dir)


@pytest.fixture
def channel() -> MockPushChannel:
    """Fresh mock push channel for each test."""
    return MockPushChannel(fail_rate=0.0)


@pytest.fixture
def change_feed():
    """Fresh change feed for each test."""
    return reset_change_feed()


@pytest.fixture
def dispatcher(data_store: DataStore, channel: MockPushChannel) -> Dispatcher:
    """Dispatcher over the fixtures and the mock channel."""
    return Dispatcher(user_store=data_store, channel=channel, max_workers=4)


class FlakyUserStore:
    """
    User store wrapper whose lookups fail for chosen user ids.

    Simulates the document store being unreachable for some reads. `error`
    builds the exception to raise; a UserLookupError by default.
    """

    def __init__(self, store: DataStore, failing_user_ids: set[str], error=None):
        self.store = store
        self.failing_user_ids = failing_user_ids
        self.error = error or (lambda user_id: UserLookupError(user_id, "store unavailable"))
        self.lookups: list[str] = []

    def get_user(self, user_id: str) -> Optional[User]:
        self.lookups.append(user_id)
        if user_id in self.failing_user_ids:
            raise self.error(user_id)
        return self.store.get_user(user_id)


@pytest.fixture
def flaky_store_factory(data_store: DataStore):
    """Build a FlakyUserStore over the fixtures."""
    def factory(*failing_user_ids: str, error=None) -> FlakyUserStore:
        return FlakyUserStore(data_store, set(failing_user_ids), error=error)
    return factory


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def amara_token() -> str:
    """Farmer user-f01 (Amara), has a device token."""
    return "tok-farmer-amara-0001"


@pytest.fixture
def ben_token() -> str:
    """Farmer user-f02 (Ben), has a device token."""
    return "tok-farmer-ben-0002"


@pytest.fixture
def chen_token() -> str:
    """Farmer user-f03 (Chen), has a device token."""
    return "tok-farmer-chen-0003"


@pytest.fixture
def elena_token() -> str:
    """Consumer user-c01 (Elena), has a device token."""
    return "tok-consumer-elena-0101"


# Farmer user-f04 (Dora) and consumer user-c02 (Farid) have no token.


# =============================================================================
# Order Snapshots
# =============================================================================

@pytest.fixture
def multi_farmer_order() -> dict:
    """
    New order document referencing farmers {f01, f02, f01, f03}.
    Three distinct farmers, all with tokens.
    """
    return {
        "orderId": "ord-100",
        "userId": "user-c01",
        "status": "pending",
        "items": [
            {"farmerId": "user-f01", "productId": "prod-tomato", "quantity": 2},
            {"farmerId": "user-f02", "productId": "prod-eggs", "quantity": 1},
            {"farmerId": "user-f01", "productId": "prod-basil", "quantity": 3},
            {"farmerId": "user-f03", "productId": "prod-honey", "quantity": 1},
        ],
    }
