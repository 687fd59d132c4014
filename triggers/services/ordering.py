"""
Ordering flow simulator.

Stands in for the marketplace app's checkout and order-management screens:
it writes orders into the data store and publishes the change events the
database would emit for those writes.

Key point:
- This service ONLY writes orders and publishes events
- It does NOT call the notifiers, and doesn't know they exist
"""

import logging
from typing import Any, Optional
from uuid import uuid4

from marketplace.data_store import DataStore, get_data_store
from marketplace.models import Order, OrderItem, OrderStatus
from triggers.change_feed import ChangeFeed, get_change_feed
from triggers.events import order_created, order_updated

logger = logging.getLogger("ordering_service")


class OrderingService:
    """
    Simulated ordering flow that publishes change events.

    Example:
        service = OrderingService()
        order = service.place_order("user-c01", [{"farmerId": "user-f01", ...}])
        service.update_status(order.order_id, "shipped")
    """

    def __init__(
        self,
        change_feed: Optional[ChangeFeed] = None,
        data_store: Optional[DataStore] = None,
    ):
        self.change_feed = change_feed or get_change_feed()
        self.data_store = data_store or get_data_store()

    def place_order(
        self,
        user_id: str,
        items: list[dict[str, Any]],
        order_id: Optional[str] = None,
    ) -> Order:
        """
        Create a pending order and publish orders.created.

        Args:
            user_id: The consumer placing the order
            items: Line items in document form (farmerId, productId, ...)
            order_id: Explicit id, generated when omitted
        """
        order = Order(
            order_id=order_id or f"ord-{uuid4().hex[:8]}",
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            items=[OrderItem.model_validate(item) for item in items],
        )
        self.data_store.save_order(order)

        logger.info(f"Order {order.order_id} placed by {user_id} with {len(order.items)} item(s)")

        self.change_feed.publish(order_created(order.order_id, order.to_document()))
        return order

    def update_status(self, order_id: str, status: str) -> bool:
        """
        Write a new status and publish orders.updated.

        The event is published even when the status is unchanged, the way a
        database trigger fires on every write.

        Returns:
            True if successful, False if the order was not found
        """
        before = self.data_store.get_order_document(order_id)
        if before is None:
            logger.error(f"Order not found: {order_id}")
            return False

        if isinstance(status, OrderStatus):
            status = status.value

        updated = self.data_store.update_order_status(order_id, status)
        logger.info(f"Order {order_id}: {before.get('status')} -> {status}")

        self.change_feed.publish(order_updated(order_id, before, updated.to_document()))
        return True
