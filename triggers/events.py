"""
Change events for the orders collection.

Each event is scoped to one order document. A created event carries the new
snapshot; an updated event carries the snapshots before and after the write.
Snapshots are raw camelCase documents, exactly as the database stores them.
"""

from typing import Any, Optional

from triggers.change_feed import ChangeKind, Event

ORDERS = "orders"


def order_created(
    order_id: str,
    data: Optional[dict[str, Any]],
    source: str = "orders-trigger",
) -> Event:
    """
    Create an orders created event.

    Published once when a new order document is written.
    """
    return Event(
        collection=ORDERS,
        kind=ChangeKind.CREATED,
        document_id=order_id,
        source=source,
        payload={"data": data},
    )


def order_updated(
    order_id: str,
    before: Optional[dict[str, Any]],
    after: Optional[dict[str, Any]],
    source: str = "orders-trigger",
) -> Event:
    """
    Create an orders updated event.

    Published on every write to an existing order, whether or not the
    status changed; the status notifier decides whether to act.
    """
    return Event(
        collection=ORDERS,
        kind=ChangeKind.UPDATED,
        document_id=order_id,
        source=source,
        payload={"before": before, "after": after},
    )
