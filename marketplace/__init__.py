"""
Shared infrastructure for the farm marketplace notifiers.

This package contains:
- Domain models (Order, OrderItem, User, NotificationPayload)
- Data store for JSON-backed users and orders
- Push channels (mock and Firebase Cloud Messaging)
- Push notification templates
- Settings and exception types
"""

from marketplace.models import (
    Order,
    OrderItem,
    OrderStatus,
    User,
    UserRole,
    NotificationPayload,
    NotificationType,
)
from marketplace.data_store import DataStore, UserStore
from marketplace.channels import MockPushChannel, PushChannel, PushResult
from marketplace.exceptions import (
    NotificationError,
    UserLookupError,
    PushDeliveryError,
    InvalidEventError,
)

__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "User",
    "UserRole",
    "NotificationPayload",
    "NotificationType",
    "DataStore",
    "UserStore",
    "MockPushChannel",
    "PushChannel",
    "PushResult",
    "NotificationError",
    "UserLookupError",
    "PushDeliveryError",
    "InvalidEventError",
]
