"""
Order notification service.

Subscribes the two order notifiers to the change feed. This is the
in-process equivalent of registering the database triggers: once started,
every `orders.created` and `orders.updated` event is handed to the matching
notifier.

Design decisions:
- The service owns no notification logic, only wiring
- Collaborators default to the configured backends
- The last report per event is kept for inspection by demos and tests
"""

import logging
from typing import Optional

from marketplace.backends import build_push_channel, build_user_store
from marketplace.channels import PushChannel
from marketplace.data_store import UserStore
from triggers.change_feed import ChangeFeed, ChangeKind, Event, get_change_feed
from triggers.dispatcher import Dispatcher, DispatchReport
from triggers.events import ORDERS
from triggers.notifiers import OrderCreatedNotifier, OrderStatusChangedNotifier

logger = logging.getLogger("order_notifications")


class OrderNotificationService:
    """
    Event-driven notification service for the orders collection.

    Example:
        service = OrderNotificationService(user_store=store, channel=channel)
        service.start()
        feed.publish(order_created("ord-001", snapshot))  # farmers notified
    """

    def __init__(
        self,
        change_feed: Optional[ChangeFeed] = None,
        user_store: Optional[UserStore] = None,
        channel: Optional[PushChannel] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the notification service.

        Args:
            change_feed: Feed to subscribe to (defaults to singleton)
            user_store: Where device tokens are looked up (defaults to configured backend)
            channel: Push channel for sending (defaults to configured backend)
            max_workers: Fan-out bound passed to the dispatcher
        """
        self.change_feed = change_feed or get_change_feed()
        self.user_store = user_store or build_user_store()
        self.channel = channel or build_push_channel()

        self.dispatcher = Dispatcher(self.user_store, self.channel, max_workers=max_workers)
        self.order_created_notifier = OrderCreatedNotifier(self.dispatcher)
        self.status_changed_notifier = OrderStatusChangedNotifier(self.dispatcher)

        # event_id -> report
        self.reports: dict[str, DispatchReport] = {}
        self._started = False

    def start(self) -> None:
        """Subscribe both notifiers to the change feed."""
        if self._started:
            logger.warning("OrderNotificationService already started")
            return

        self.change_feed.subscribe(ORDERS, self._handle_order_created, kind=ChangeKind.CREATED)
        self.change_feed.subscribe(ORDERS, self._handle_order_updated, kind=ChangeKind.UPDATED)

        self._started = True
        logger.info("OrderNotificationService started - subscribed to order events")

    def stop(self) -> None:
        """Stop the service by unsubscribing from events."""
        if not self._started:
            return

        self.change_feed.unsubscribe(ORDERS, self._handle_order_created, kind=ChangeKind.CREATED)
        self.change_feed.unsubscribe(ORDERS, self._handle_order_updated, kind=ChangeKind.UPDATED)

        self._started = False
        logger.info("OrderNotificationService stopped")

    @property
    def started(self) -> bool:
        return self._started

    # =========================================================================
    # Event Handlers
    # =========================================================================

    def _handle_order_created(self, event: Event) -> DispatchReport:
        report = self.order_created_notifier.handle(event)
        self.reports[event.event_id] = report
        return report

    def _handle_order_updated(self, event: Event) -> DispatchReport:
        report = self.status_changed_notifier.handle(event)
        self.reports[event.event_id] = report
        return report

    def get_report(self, event_id: str) -> Optional[DispatchReport]:
        return self.reports.get(event_id)
