"""
Push notification channels.

A push channel accepts a `NotificationPayload` addressed to one device token
and attempts best-effort delivery. `MockPushChannel` logs and records sends
for the demos and tests; `marketplace.firebase.FCMPushChannel` delivers
through Firebase Cloud Messaging.

Design decisions:
- All sends are logged for visibility (tokens truncated to 8 chars)
- Channels raise `PushDeliveryError` on failure; callers decide how to isolate it
- The mock channel tracks sent messages for test assertions
- Channel failures can be simulated per token or by rate
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Protocol
from uuid import uuid4

from marketplace.exceptions import PushDeliveryError
from marketplace.models import NotificationPayload

logger = logging.getLogger("push")


def token_prefix(token: Optional[str]) -> str:
    """Shorten a device token for log output."""
    return (token or "")[:8]


@dataclass
class PushResult:
    """
    Result of a push send attempt.

    Captures success/failure and metadata for debugging and testing.
    """
    success: bool
    token: str
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    message_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    error: Optional[str] = None

    def __str__(self) -> str:
        status = "✓" if self.success else "✗"
        return f"{status} PUSH to {token_prefix(self.token)}...: {self.title} | {self.body}"


class PushChannel(Protocol):
    """Delivery interface shared by the mock and FCM channels."""

    def send(self, payload: NotificationPayload) -> PushResult:
        ...


class MockPushChannel:
    """
    Mock push channel.

    Logs sends and tracks them for test assertions. Can simulate failures
    for specific tokens or at a given rate. Safe to call from the
    dispatcher's worker threads.
    """

    def __init__(self, fail_rate: float = 0.0, failing_tokens: Optional[Iterable[str]] = None):
        """
        Initialize the push channel.

        Args:
            fail_rate: Probability of send failure (0.0 to 1.0), for testing.
            failing_tokens: Tokens whose sends always fail.
        """
        self.fail_rate = fail_rate
        self.failing_tokens: set[str] = set(failing_tokens or ())
        self.sent_messages: list[PushResult] = []
        self._lock = threading.Lock()

    def send(self, payload: NotificationPayload) -> PushResult:
        """
        Send a push notification (mock implementation).

        Returns:
            PushResult for a delivered message

        Raises:
            PushDeliveryError: when the send is simulated to fail
        """
        if payload.token in self.failing_tokens or random.random() < self.fail_rate:
            result = PushResult(
                success=False,
                token=payload.token,
                title=payload.title,
                body=payload.body,
                data=dict(payload.data),
                error="Simulated push delivery failure",
            )
            self._record(result)
            logger.error(f"[PUSH FAILED] token={token_prefix(payload.token)} | Error: {result.error}")
            raise PushDeliveryError(payload.token, result.error)

        result = PushResult(
            success=True,
            token=payload.token,
            title=payload.title,
            body=payload.body,
            data=dict(payload.data),
            message_id=f"mock-{uuid4().hex[:12]}",
        )
        self._record(result)
        logger.info(f"[PUSH] token={token_prefix(payload.token)} | {payload.title}")
        logger.debug(f"[PUSH BODY] {payload.body}")
        return result

    def _record(self, result: PushResult) -> None:
        with self._lock:
            self.sent_messages.append(result)

    def get_sent_count(self) -> int:
        """Get the number of send attempts (for testing)."""
        return len(self.sent_messages)

    def get_successful_sends(self) -> list[PushResult]:
        """Get all successful sends."""
        return [m for m in self.sent_messages if m.success]

    def clear_history(self):
        """Clear sent message history (useful between tests)."""
        with self._lock:
            self.sent_messages.clear()

    def find_messages_to(self, token: str) -> list[PushResult]:
        """Find every message addressed to a token."""
        return [m for m in self.sent_messages if m.token == token]

    def find_message_to(self, token: str) -> Optional[PushResult]:
        """Find the first message addressed to a token."""
        for msg in self.sent_messages:
            if msg.token == token:
                return msg
        return None
