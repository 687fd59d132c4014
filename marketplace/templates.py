"""
Push notification templates.

Each notification type has a title and a body with {variable} placeholders,
filled with Python's string formatting. Push bodies are short; the mobile
app shows them in the system tray.
"""

from dataclasses import dataclass
from typing import Optional

from marketplace.models import NotificationType


@dataclass
class PushTemplate:
    """A notification title and body for one notification type."""
    notification_type: NotificationType
    title: str
    body: str

    def render(self, **kwargs) -> tuple[str, str]:
        """
        Render the template with provided variables.

        Returns:
            Tuple of (title, body)
        """
        return (
            self.title.format(**kwargs),
            self.body.format(**kwargs),
        )


# =============================================================================
# Template Definitions
# =============================================================================

TEMPLATES: dict[NotificationType, PushTemplate] = {

    # Sent to each farmer whose products appear in a new order
    NotificationType.ORDER_PLACED: PushTemplate(
        notification_type=NotificationType.ORDER_PLACED,
        title="New Order Received",
        body="Order #{order_id} includes your products!",
    ),

    # Sent to the consumer when the order's status changes
    NotificationType.ORDER_STATUS: PushTemplate(
        notification_type=NotificationType.ORDER_STATUS,
        title="Order Status Updated",
        body="Your order #{order_id} is now {status}",
    ),
}


def get_template(notification_type: NotificationType) -> Optional[PushTemplate]:
    """Get a template by notification type."""
    return TEMPLATES.get(notification_type)


def render_push(notification_type: NotificationType, **context) -> tuple[str, str]:
    """
    Render the title and body for a notification type.

    Raises:
        ValueError: If no template exists for the type
        KeyError: If a placeholder is missing from the context
    """
    template = get_template(notification_type)
    if not template:
        raise ValueError(f"No template found for notification type: {notification_type}")
    return template.render(**context)
