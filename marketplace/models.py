"""
Domain models for the farm marketplace notifiers.

These models mirror the documents stored in the `orders` and `users`
collections. Field names follow the camelCase wire format of the mobile
clients (`orderId`, `farmerId`, `fcmToken`) through aliases, while Python
code uses snake_case attributes.

Design decisions:
- Using Pydantic for validation and serialization
- Unknown document fields are kept (`extra="allow"`) so snapshots round-trip
- Order status is a plain string; the notifiers do not validate transitions
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Enums
# =============================================================================

class OrderStatus(str, Enum):
    """
    Order lifecycle states used by the simulated ordering flow.

    The status notifier accepts any string, these are only the values
    the marketplace app writes today.
    """
    PENDING = "pending"           # Order placed, awaiting the farmers
    CONFIRMED = "confirmed"       # Farmers accepted the order
    SHIPPED = "shipped"           # Produce is on its way
    DELIVERED = "delivered"       # Consumer received the order
    CANCELLED = "cancelled"       # Order was cancelled


class UserRole(str, Enum):
    """Marketplace account roles."""
    FARMER = "farmer"
    CONSUMER = "consumer"


class NotificationType(str, Enum):
    """Values carried in the `type` field of a push payload's data map."""
    ORDER_PLACED = "order_placed"
    ORDER_STATUS = "order_status"


# =============================================================================
# Documents
# =============================================================================

class User(BaseModel):
    """
    A marketplace account.

    The device token is set by the mobile app's registration flow and may
    be missing (user never granted permission, or logged out).
    """
    user_id: str = Field(..., alias="userId", description="Document id in the users collection")
    name: Optional[Any] = Field(default=None)
    role: Optional[Any] = Field(default=None, description="A UserRole value; other roles are tolerated")
    fcm_token: Optional[str] = Field(
        default=None,
        alias="fcmToken",
        description="Push token of the user's installed app",
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @property
    def has_token(self) -> bool:
        return bool(self.fcm_token)


class OrderItem(BaseModel):
    """
    A single line item; each item references the farmer selling it.

    Only `farmerId` is read. Product fields (`productId`, `productName`,
    `quantity`, ...) are kept as written, whatever their type.
    """
    farmer_id: Optional[str] = Field(default=None, alias="farmerId")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Order(BaseModel):
    """
    A purchase linking a consumer to one or more farmers' products.

    `status` is deliberately an unconstrained string.
    """
    order_id: str = Field(..., alias="orderId")
    user_id: Optional[str] = Field(default=None, alias="userId", description="Owning consumer")
    status: Optional[str] = Field(default=None)
    items: list[OrderItem] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("order_id", "status", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> Any:
        # Some clients write numeric order ids and status codes
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @classmethod
    def from_snapshot(cls, document_id: str, data: Optional[dict[str, Any]]) -> "Order":
        """
        Build an order from a raw document snapshot.

        Snapshots written by older app versions have no `orderId` field;
        the document id is used instead. A null `items` field is treated
        as an empty list.
        """
        data = dict(data or {})
        if not data.get("orderId") and not data.get("order_id"):
            data["orderId"] = document_id
        if data.get("items") is None:
            data["items"] = []
        return cls.model_validate(data)

    def to_document(self) -> dict[str, Any]:
        """Serialize back to the camelCase document shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Push Payload
# =============================================================================

class NotificationPayload(BaseModel):
    """
    A push notification addressed to one device token.

    Constructed per dispatch and never persisted.
    """
    title: str
    body: str
    data: dict[str, str] = Field(default_factory=dict)
    token: str

    def to_message(self) -> dict[str, Any]:
        """The wire shape accepted by the push-delivery service."""
        return {
            "notification": {"title": self.title, "body": self.body},
            "data": dict(self.data),
            "token": self.token,
        }
