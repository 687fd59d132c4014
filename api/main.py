"""
FastAPI application exposing the order triggers over HTTP.

An external change-feed runtime (a Firestore trigger forwarder, Eventarc,
a queue consumer) delivers document events here:

- POST /triggers/orders/{order_id}/created   body: {"data": {...}}
- POST /triggers/orders/{order_id}/updated   body: {"before": {...}, "after": {...}}

Each call runs the matching notifier and returns the per-recipient results.

Run with:
    uvicorn api.main:app --reload

Then visit http://localhost:8000/docs for interactive API documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from marketplace.backends import build_push_channel, build_user_store
from marketplace.channels import MockPushChannel
from marketplace.data_store import DataStore
from marketplace.exceptions import InvalidEventError
from marketplace.models import NotificationType, UserRole
from marketplace.settings import get_settings
from triggers.change_feed import get_change_feed
from triggers.dispatcher import DispatchReport, RecipientResult
from triggers.events import order_created, order_updated
from triggers.notification_service import OrderNotificationService

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s | %(name)-24s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("api")


# Request/response models
class OrderCreatedTrigger(BaseModel):
    """Snapshot of a newly created order document."""
    data: dict[str, Any] = Field(..., description="The new order document")


class OrderUpdatedTrigger(BaseModel):
    """Snapshots of an order document before and after a write."""
    before: dict[str, Any] = Field(..., description="Document before the write")
    after: dict[str, Any] = Field(..., description="Document after the write")


class TriggerResponse(BaseModel):
    """Outcome of handling one trigger."""
    event_id: Optional[str]
    notification_type: NotificationType
    order_id: str
    sent: int
    skipped: int
    failed: int
    results: list[RecipientResult]

    @classmethod
    def from_report(cls, report: DispatchReport) -> "TriggerResponse":
        return cls(
            event_id=report.event_id,
            notification_type=report.notification_type,
            order_id=report.order_id,
            sent=report.sent_count,
            skipped=report.skipped_count,
            failed=report.failed_count,
            results=report.results,
        )


# Module-level instances (swapped out in tests)
_service: Optional[OrderNotificationService] = None
_data_store: Optional[DataStore] = None


def get_service() -> OrderNotificationService:
    """Get the notification service, built from settings on first use."""
    global _service
    if _service is None:
        _service = OrderNotificationService(
            change_feed=get_change_feed(),
            user_store=build_user_store(),
            channel=build_push_channel(),
        )
        _service.start()
    return _service


def get_store() -> DataStore:
    """Get the fixture data store used by the /data endpoints."""
    global _data_store
    if _data_store is None:
        _data_store = DataStore()
    return _data_store


def reset_api_state(
    service: Optional[OrderNotificationService] = None,
    data_store: Optional[DataStore] = None,
) -> None:
    """Reset API state (for testing)."""
    global _service, _data_store
    _service = service
    _data_store = data_store


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        f"Starting order notification triggers "
        f"(users={settings.user_backend}, push={settings.push_backend})"
    )
    yield
    if _service is not None:
        _service.stop()
    logger.info("Shutting down")


app = FastAPI(
    title="Farm Order Notifications",
    description="Push notifications to farmers on new orders and to consumers on status changes.",
    version="1.0.0",
    lifespan=lifespan,
)


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "farm-order-notifications"}


# =============================================================================
# Trigger Surface
# =============================================================================

@app.post("/triggers/orders/{order_id}/created", response_model=TriggerResponse, tags=["Triggers"])
def trigger_order_created(
    order_id: str,
    trigger: OrderCreatedTrigger,
    service: OrderNotificationService = Depends(get_service),
):
    """
    Handle a "document created" event for an order.

    Notifies every distinct farmer referenced by the order's line items.
    """
    event = order_created(order_id, trigger.data, source="http-trigger")
    try:
        report = service.order_created_notifier.handle(event)
    except InvalidEventError as e:
        raise HTTPException(status_code=422, detail=str(e))

    service.reports[event.event_id] = report
    return TriggerResponse.from_report(report)


@app.post("/triggers/orders/{order_id}/updated", response_model=TriggerResponse, tags=["Triggers"])
def trigger_order_updated(
    order_id: str,
    trigger: OrderUpdatedTrigger,
    service: OrderNotificationService = Depends(get_service),
):
    """
    Handle a "document updated" event for an order.

    Notifies the consumer when the status changed; otherwise a no-op.
    """
    event = order_updated(order_id, trigger.before, trigger.after, source="http-trigger")
    try:
        report = service.status_changed_notifier.handle(event)
    except InvalidEventError as e:
        raise HTTPException(status_code=422, detail=str(e))

    service.reports[event.event_id] = report
    return TriggerResponse.from_report(report)


# =============================================================================
# Data Endpoints (for exploration)
# =============================================================================

@app.get("/data/users", tags=["Data"])
def get_users(role: Optional[UserRole] = None, data_store: DataStore = Depends(get_store)):
    """Get users in the fixtures, optionally only farmers or consumers."""
    users = data_store.get_users_by_role(role.value) if role else data_store.get_users()
    return [
        {"userId": u.user_id, "name": u.name, "role": u.role, "hasToken": u.has_token}
        for u in users
    ]


@app.get("/data/orders", tags=["Data"])
def get_orders(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    data_store: DataStore = Depends(get_store),
):
    """Get orders in the fixtures, optionally those placed by one consumer."""
    orders = data_store.get_orders_by_user(user_id) if user_id else data_store.get_orders()
    return [o.to_document() for o in orders]


@app.get("/notifications", tags=["Data"])
def get_notifications(service: OrderNotificationService = Depends(get_service)):
    """Push messages recorded by the mock channel (empty for FCM)."""
    if not isinstance(service.channel, MockPushChannel):
        return []
    return [
        {
            "token": m.token,
            "title": m.title,
            "body": m.body,
            "data": m.data,
            "success": m.success,
            "messageId": m.message_id,
        }
        for m in service.channel.sent_messages
    ]
