"""
The two order notifiers.

- OrderCreatedNotifier: a new order tells every farmer whose products it
  contains ("New Order Received").
- OrderStatusChangedNotifier: a status change tells the consumer who placed
  the order ("Order Status Updated").

Each notifier turns an event into a list of `DispatchRequest`s with pure
functions (no I/O) and hands them to the `Dispatcher`, which does the
lookups and sends. Notifiers hold no state between events.
"""

import logging
from functools import partial
from typing import Any, Optional

from pydantic import ValidationError

from marketplace.exceptions import InvalidEventError
from marketplace.models import NotificationPayload, NotificationType, Order
from marketplace.templates import render_push
from triggers.change_feed import Event
from triggers.dispatcher import Dispatcher, DispatchReport, DispatchRequest

logger = logging.getLogger("order_notifications")


# =============================================================================
# Planning (pure functions)
# =============================================================================

def parse_order(document_id: str, data: Optional[dict[str, Any]]) -> Order:
    """
    Validate an order snapshot.

    Raises:
        InvalidEventError: if the snapshot is not a valid order document
    """
    try:
        return Order.from_snapshot(document_id, data)
    except ValidationError as e:
        raise InvalidEventError(f"Invalid order snapshot for {document_id}: {e}") from e


# Fields a status change reads; anything else in the snapshot is ignored
STATUS_FIELDS = ("orderId", "userId", "status")


def parse_status_snapshot(document_id: str, data: Optional[dict[str, Any]]) -> Order:
    """
    Validate only the fields a status change needs.

    Line items are dropped before validation, so a malformed item cannot
    block a status notification.
    """
    data = {key: value for key, value in (data or {}).items() if key in STATUS_FIELDS}
    return parse_order(document_id, data)


def farmer_ids_for(order: Order) -> list[str]:
    """
    Distinct farmer ids referenced by an order's line items.

    Duplicates collapse; first-seen order is kept so logs are stable.
    Items without a farmer id are ignored.
    """
    farmer_ids: list[str] = []
    seen: set[str] = set()
    for item in order.items:
        if not item.farmer_id:
            logger.warning(f"Order {order.order_id} has a line item without farmerId")
            continue
        if item.farmer_id not in seen:
            seen.add(item.farmer_id)
            farmer_ids.append(item.farmer_id)
    return farmer_ids


def order_placed_payload(order_id: str, token: str) -> NotificationPayload:
    title, body = render_push(NotificationType.ORDER_PLACED, order_id=order_id)
    return NotificationPayload(
        title=title,
        body=body,
        data={"type": NotificationType.ORDER_PLACED.value, "orderId": order_id},
        token=token,
    )


def order_status_payload(order_id: str, status: str, token: str) -> NotificationPayload:
    title, body = render_push(NotificationType.ORDER_STATUS, order_id=order_id, status=status)
    return NotificationPayload(
        title=title,
        body=body,
        data={"type": NotificationType.ORDER_STATUS.value, "orderId": order_id},
        token=token,
    )


def status_changed(before: Order, after: Order) -> bool:
    """Statuses are compared by value; any difference counts as a transition."""
    return before.status != after.status


# =============================================================================
# Notifiers
# =============================================================================

class OrderCreatedNotifier:
    """
    Notifies farmers when an order containing their products is placed.

    Example:
        notifier = OrderCreatedNotifier(dispatcher)
        report = notifier.handle(order_created("ord-001", snapshot))
    """

    notification_type = NotificationType.ORDER_PLACED

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    def plan(self, order: Order) -> list[DispatchRequest]:
        """One request per distinct farmer."""
        return [
            DispatchRequest(
                user_id=farmer_id,
                build_payload=partial(order_placed_payload, order.order_id),
            )
            for farmer_id in farmer_ids_for(order)
        ]

    def notify(self, order: Order, event_id: Optional[str] = None) -> DispatchReport:
        requests = self.plan(order)
        logger.info(f"Order {order.order_id} created: notifying {len(requests)} farmer(s)")
        return self.dispatcher.dispatch_all(
            requests,
            self.notification_type,
            order_id=order.order_id,
            event_id=event_id,
        )

    def handle(self, event: Event) -> DispatchReport:
        """Handle an orders.created event."""
        order = parse_order(event.document_id, event.snapshot("data"))
        return self.notify(order, event_id=event.event_id)


class OrderStatusChangedNotifier:
    """
    Notifies the consumer when their order's status changes.

    No transition rules are enforced: any change of the status string
    (including to or from a missing status) is notified.
    """

    notification_type = NotificationType.ORDER_STATUS

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher

    def plan(self, before: Order, after: Order) -> list[DispatchRequest]:
        if not status_changed(before, after):
            return []

        if not after.user_id:
            logger.warning(f"Order {after.order_id} changed status but has no userId")
            return []

        return [
            DispatchRequest(
                user_id=after.user_id,
                build_payload=partial(order_status_payload, after.order_id, str(after.status)),
            )
        ]

    def notify(self, before: Order, after: Order, event_id: Optional[str] = None) -> DispatchReport:
        requests = self.plan(before, after)
        if requests:
            logger.info(f"Order {after.order_id} status: {before.status} -> {after.status}")
        else:
            logger.debug(f"Order {after.order_id} updated without a notifiable status change")
        return self.dispatcher.dispatch_all(
            requests,
            self.notification_type,
            order_id=after.order_id,
            event_id=event_id,
        )

    def handle(self, event: Event) -> DispatchReport:
        """Handle an orders.updated event."""
        before = parse_status_snapshot(event.document_id, event.snapshot("before"))
        after = parse_status_snapshot(event.document_id, event.snapshot("after"))
        return self.notify(before, after, event_id=event.event_id)
