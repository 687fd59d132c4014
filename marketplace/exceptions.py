"""
Exception types raised by the user stores, push channels and notifiers.

A missing device token is not an error: it is a recognised skip outcome
recorded in the dispatch report.
"""


class NotificationError(Exception):
    """Base class for notification pipeline errors."""


class UserLookupError(NotificationError):
    """The user store could not be reached or returned an unreadable record."""

    def __init__(self, user_id: str, reason: str):
        self.user_id = user_id
        self.reason = reason
        super().__init__(f"Lookup failed for user {user_id}: {reason}")


class PushDeliveryError(NotificationError):
    """The push-delivery service rejected the message or was unreachable."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Push to {token[:8]}... failed: {reason}")


class InvalidEventError(NotificationError):
    """A change-feed event carried a snapshot that is not a valid order."""
