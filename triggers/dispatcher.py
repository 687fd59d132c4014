"""
Fan-out of push notifications with per-recipient failure isolation.

A handled event turns into one `DispatchRequest` per recipient. The
dispatcher runs each request (user lookup, token check, send) as an
independent task in a thread pool and gathers one `RecipientResult` per
recipient into a `DispatchReport`. A lookup or delivery failure for one
recipient is recorded and never stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from marketplace.channels import PushChannel, token_prefix
from marketplace.data_store import UserStore
from marketplace.exceptions import PushDeliveryError, UserLookupError
from marketplace.models import NotificationPayload, NotificationType
from marketplace.settings import get_settings

logger = logging.getLogger("dispatcher")


class Outcome(str, Enum):
    """What happened for one recipient."""
    SENT = "sent"
    SKIPPED_NO_TOKEN = "skipped_no_token"
    SKIPPED_UNKNOWN_USER = "skipped_unknown_user"
    LOOKUP_FAILED = "lookup_failed"
    DISPATCH_FAILED = "dispatch_failed"


@dataclass
class DispatchRequest:
    """
    One recipient's unit of work.

    `build_payload` receives the recipient's device token once it is known.
    """
    user_id: str
    build_payload: Callable[[str], NotificationPayload]


class RecipientResult(BaseModel):
    """Result of dispatching to a single recipient."""
    user_id: str
    outcome: Outcome
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.outcome in (Outcome.LOOKUP_FAILED, Outcome.DISPATCH_FAILED)

    @property
    def skipped(self) -> bool:
        return self.outcome in (Outcome.SKIPPED_NO_TOKEN, Outcome.SKIPPED_UNKNOWN_USER)


class DispatchReport(BaseModel):
    """
    Per-recipient results for one handled event.

    An event that needs no notification (unchanged status, no line items)
    produces a report with no results.
    """
    notification_type: NotificationType
    order_id: str
    event_id: Optional[str] = None
    results: list[RecipientResult] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    @property
    def sent_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == Outcome.SENT)

    @property
    def skipped_count(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def message_ids(self) -> list[str]:
        return [r.message_id for r in self.results if r.message_id]

    def result_for(self, user_id: str) -> Optional[RecipientResult]:
        for result in self.results:
            if result.user_id == user_id:
                return result
        return None


class Dispatcher:
    """
    Scatter/gather dispatcher.

    Example:
        dispatcher = Dispatcher(user_store=DataStore(), channel=MockPushChannel())
        report = dispatcher.dispatch_all(requests, NotificationType.ORDER_PLACED, "ord-001")
    """

    def __init__(
        self,
        user_store: UserStore,
        channel: PushChannel,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            user_store: Where device tokens are looked up
            channel: Where payloads are sent
            max_workers: Upper bound on concurrent recipients (1 = sequential).
                        Defaults to the configured `dispatch_max_workers`.
        """
        self.user_store = user_store
        self.channel = channel
        self.max_workers = max_workers or get_settings().dispatch_max_workers

    def dispatch_all(
        self,
        requests: list[DispatchRequest],
        notification_type: NotificationType,
        order_id: str,
        event_id: Optional[str] = None,
    ) -> DispatchReport:
        """
        Run every request and collect the results, in request order.
        """
        report = DispatchReport(
            notification_type=notification_type,
            order_id=order_id,
            event_id=event_id,
        )
        if not requests:
            return report

        workers = min(self.max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dispatch") as pool:
            futures = [pool.submit(self.dispatch_one, request) for request in requests]
            report.results = [future.result() for future in futures]

        logger.info(
            f"{notification_type.value} for order {order_id}: "
            f"{report.sent_count} sent, {report.skipped_count} skipped, "
            f"{report.failed_count} failed"
        )
        return report

    def dispatch_one(self, request: DispatchRequest) -> RecipientResult:
        """
        Look up one recipient's token and send their notification.

        Never raises: any error is recorded as this recipient's outcome.
        """
        user_id = request.user_id

        try:
            user = self.user_store.get_user(user_id)
        except UserLookupError as e:
            logger.error(f"User lookup failed for {user_id}: {e.reason}")
            return RecipientResult(user_id=user_id, outcome=Outcome.LOOKUP_FAILED, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error looking up {user_id}")
            return RecipientResult(user_id=user_id, outcome=Outcome.LOOKUP_FAILED, error=repr(e))

        if user is None:
            logger.debug(f"No user document for {user_id}, skipping")
            return RecipientResult(user_id=user_id, outcome=Outcome.SKIPPED_UNKNOWN_USER)

        if not user.fcm_token:
            logger.debug(f"User {user_id} has no device token, skipping")
            return RecipientResult(user_id=user_id, outcome=Outcome.SKIPPED_NO_TOKEN)

        try:
            result = self.channel.send(request.build_payload(user.fcm_token))
        except PushDeliveryError as e:
            logger.error(f"Push to {user_id} (token={token_prefix(user.fcm_token)}) failed: {e.reason}")
            return RecipientResult(user_id=user_id, outcome=Outcome.DISPATCH_FAILED, error=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error sending to {user_id}")
            return RecipientResult(user_id=user_id, outcome=Outcome.DISPATCH_FAILED, error=repr(e))

        return RecipientResult(user_id=user_id, outcome=Outcome.SENT, message_id=result.message_id)
