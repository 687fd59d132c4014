"""
In-memory change feed for document collections.

Stands in for the managed database trigger runtime: writers publish
"document created" and "document updated" events for a collection, and the
notifiers subscribe to the collection and change kind they care about. In
production the events arrive from Firestore triggers (or over HTTP, see
`api.main`).

Design decisions:
- Synchronous delivery: each event is handled before publish() returns
- Routing on (collection, kind); a subscription without a kind sees every
  change to the collection
- Events must name their document and carry the snapshots for their kind
- A failing handler is logged and never blocks the other handlers
- No persistence; an in-memory log is kept for demos and tests
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

from marketplace.exceptions import InvalidEventError

logger = logging.getLogger("change_feed")


class ChangeKind(str, Enum):
    """The write that produced an event."""
    CREATED = "created"
    UPDATED = "updated"


# Snapshot keys each kind of event must carry
REQUIRED_SNAPSHOTS: dict[ChangeKind, tuple[str, ...]] = {
    ChangeKind.CREATED: ("data",),
    ChangeKind.UPDATED: ("before", "after"),
}


@dataclass
class Event:
    """
    A change to one document.

    Attributes:
        collection: Collection the document lives in, e.g. "orders"
        kind: Whether the document was created or updated
        document_id: Id of the changed document
        payload: Raw snapshots; "data" for created, "before"/"after" for updated
        source: Which component published the event
        event_id: Unique identifier for this event instance
        timestamp: When the change was observed
    """
    collection: str
    kind: ChangeKind
    document_id: str
    payload: dict[str, Any]
    source: str
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def event_type(self) -> str:
        return f"{self.collection}.{self.kind.value}"

    def snapshot(self, name: str) -> Optional[dict[str, Any]]:
        """One of the snapshots carried by the event ("data", "before", "after")."""
        return self.payload.get(name)

    def __str__(self) -> str:
        return f"Event({self.event_type}/{self.document_id}, id={self.event_id[:8]}, source={self.source})"


EventHandler = Callable[[Event], Any]


def validate_event(event: Event) -> None:
    """
    Check that an event names its document and carries its snapshots.

    Raises:
        InvalidEventError: if the document id or a required snapshot is missing
    """
    if not event.document_id:
        raise InvalidEventError(f"{event.event_type} event {event.event_id} has no document_id")

    missing = [key for key in REQUIRED_SNAPSHOTS[event.kind] if key not in event.payload]
    if missing:
        raise InvalidEventError(
            f"{event.event_type} event for {event.document_id} is missing {', '.join(missing)}"
        )


class ChangeFeed:
    """
    Pub/sub over document changes.

    Example usage:
        feed = ChangeFeed()
        feed.subscribe("orders", handle_new_order, kind=ChangeKind.CREATED)
        feed.publish(order_created("ord-001", {...}))
    """

    def __init__(self):
        # (collection, kind or None) -> handlers
        self._subscribers: dict[tuple[str, Optional[ChangeKind]], list[EventHandler]] = defaultdict(list)
        self._event_log: list[Event] = []

    def subscribe(self, collection: str, handler: EventHandler, kind: Optional[ChangeKind] = None) -> None:
        """
        Subscribe to changes in a collection.

        With no `kind`, the handler receives both created and updated events.
        """
        self._subscribers[(collection, kind)].append(handler)
        logger.debug(f"Subscribed handler to '{collection}' ({kind.value if kind else 'all changes'})")

    def unsubscribe(self, collection: str, handler: EventHandler, kind: Optional[ChangeKind] = None) -> bool:
        """
        Returns:
            True if the handler was found and removed, False otherwise
        """
        try:
            self._subscribers[(collection, kind)].remove(handler)
        except ValueError:
            return False
        logger.debug(f"Unsubscribed handler from '{collection}'")
        return True

    def publish(self, event: Event) -> int:
        """
        Deliver an event to the collection's subscribers.

        Handlers for the exact kind run first, then collection-wide handlers,
        each group in subscription order. A handler exception is logged and
        the remaining handlers still run.

        Returns:
            Number of handlers that received the event

        Raises:
            InvalidEventError: if the event fails `validate_event`; nothing is delivered
        """
        validate_event(event)
        self._event_log.append(event)

        logger.info(f"Publishing: {event}")

        handlers = (
            self._subscribers.get((event.collection, event.kind), [])
            + self._subscribers.get((event.collection, None), [])
        )

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Handler raised exception for {event}: {e}")

        if not handlers:
            logger.warning(f"No handlers for '{event.event_type}'")

        return len(handlers)

    def get_subscriber_count(self, collection: str, kind: Optional[ChangeKind] = None) -> int:
        return len(self._subscribers.get((collection, kind), []))

    def get_event_log(self, document_id: Optional[str] = None) -> list[Event]:
        """Published events, oldest first, optionally for one document."""
        if document_id is None:
            return self._event_log.copy()
        return [e for e in self._event_log if e.document_id == document_id]


_default_feed: Optional[ChangeFeed] = None


def get_change_feed() -> ChangeFeed:
    """Get the process-wide change feed."""
    global _default_feed
    if _default_feed is None:
        _default_feed = ChangeFeed()
    return _default_feed


def reset_change_feed() -> ChangeFeed:
    """Replace the process-wide change feed with an empty one."""
    global _default_feed
    _default_feed = ChangeFeed()
    return _default_feed
