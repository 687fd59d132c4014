"""
JSON-backed data store for the farm marketplace.

This module provides a simple data access layer that reads from JSON fixture
files. In production the users and orders live in Firestore (see
`marketplace.firebase.FirestoreUserStore`); this store backs the demos, the
HTTP data endpoints and the tests.

Design decisions:
- Fixtures are loaded lazily on first access
- Write operations update in-memory state only
- Singleton-like behavior via module-level instance caching
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from marketplace.models import Order, User
from marketplace.settings import get_settings

logger = logging.getLogger("data_store")


class UserStore(Protocol):
    """
    Read interface the notifiers need from a document store.

    Returns None when the user document does not exist and raises
    `UserLookupError` when the store itself cannot be reached.
    """

    def get_user(self, user_id: str) -> Optional[User]:
        ...


class DataStore:
    """
    Data store that loads and manages the users and orders fixtures.

    Satisfies the `UserStore` interface.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        """
        Initialize the data store.

        Args:
            data_dir: Path to the directory containing users.json and orders.json.
                     Defaults to the configured `data_dir`.
        """
        if data_dir is None:
            data_dir = get_settings().data_dir

        self.data_dir = Path(data_dir)

        # In-memory caches - loaded lazily
        self._users: Optional[dict[str, User]] = None
        self._orders: Optional[dict[str, Order]] = None  # keyed by document id

    # =========================================================================
    # Data Loading (lazy)
    # =========================================================================

    def _load_json(self, filename: str) -> list[dict]:
        """Load a JSON fixture file."""
        filepath = self.data_dir / filename
        if not filepath.exists():
            logger.warning(f"Fixture file not found: {filepath}")
            return []
        with open(filepath, "r") as f:
            return json.load(f)

    def _ensure_users_loaded(self):
        if self._users is None:
            data = self._load_json("users.json")
            self._users = {u["userId"]: User(**u) for u in data}

    def _ensure_orders_loaded(self):
        if self._orders is None:
            data = self._load_json("orders.json")
            self._orders = {o["orderId"]: Order.from_snapshot(o["orderId"], o) for o in data}

    # =========================================================================
    # User Operations
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID, or None if no such document exists."""
        self._ensure_users_loaded()
        return self._users.get(user_id)

    def get_users(self) -> list[User]:
        """Get all users."""
        self._ensure_users_loaded()
        return list(self._users.values())

    def get_users_by_role(self, role: str) -> list[User]:
        """Get users with a specific role (farmer or consumer)."""
        self._ensure_users_loaded()
        return [u for u in self._users.values() if u.role == role]

    # =========================================================================
    # Order Operations
    # =========================================================================

    def get_order(self, order_id: str) -> Optional[Order]:
        """Get an order by document ID."""
        self._ensure_orders_loaded()
        return self._orders.get(order_id)

    def get_orders(self) -> list[Order]:
        """Get all orders."""
        self._ensure_orders_loaded()
        return list(self._orders.values())

    def get_orders_by_user(self, user_id: str) -> list[Order]:
        """Get all orders placed by a consumer."""
        self._ensure_orders_loaded()
        return [o for o in self._orders.values() if o.user_id == user_id]

    def save_order(self, order: Order) -> Order:
        """Insert or replace an order (in-memory only)."""
        self._ensure_orders_loaded()
        self._orders[order.order_id] = order
        return order

    def update_order_status(self, order_id: str, status: str) -> Optional[Order]:
        """
        Update an order's status (in-memory only).

        Returns the updated order or None if not found.
        """
        self._ensure_orders_loaded()
        order = self._orders.get(order_id)
        if not order:
            return None
        updated = order.model_copy(update={"status": status})
        self._orders[order_id] = updated
        return updated

    def get_order_document(self, order_id: str) -> Optional[dict[str, Any]]:
        """Get the raw camelCase snapshot of an order."""
        order = self.get_order(order_id)
        return order.to_document() if order else None

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def reload(self):
        """
        Force reload all data from JSON files.

        Discards in-memory writes.
        """
        self._users = None
        self._orders = None


# Module-level singleton for convenience
# In tests, create a new DataStore instance with test fixtures
_default_store: Optional[DataStore] = None


def get_data_store() -> DataStore:
    """Get the default data store singleton."""
    global _default_store
    if _default_store is None:
        _default_store = DataStore()
    return _default_store
