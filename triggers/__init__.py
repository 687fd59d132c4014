"""
Order change-feed triggers.

This package reacts to writes on the orders collection:
- The change feed delivers created / updated events for order documents
- The notifiers turn events into per-recipient dispatch requests
- The dispatcher looks up device tokens and sends push notifications
"""

from triggers.change_feed import ChangeFeed, ChangeKind, Event, get_change_feed, reset_change_feed
from triggers.dispatcher import Dispatcher, DispatchReport, Outcome, RecipientResult
from triggers.notifiers import OrderCreatedNotifier, OrderStatusChangedNotifier
from triggers.notification_service import OrderNotificationService

__all__ = [
    "ChangeFeed",
    "ChangeKind",
    "Event",
    "get_change_feed",
    "reset_change_feed",
    "Dispatcher",
    "DispatchReport",
    "Outcome",
    "RecipientResult",
    "OrderCreatedNotifier",
    "OrderStatusChangedNotifier",
    "OrderNotificationService",
]
