"""
BugBoy Demo API -- Pydantic request models.

Every JSON body the API accepts is defined here. Fields are snake_case in
Python and camelCase on the wire (`customerId`, `markAllRead`, ...): the
alias generator handles the translation and `populate_by_name` lets tests
and internal callers use either spelling.

Validation failures are answered with a 400 envelope by the app's
RequestValidationError handler, not FastAPI's default 422.
"""

from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Constrained choices
# ---------------------------------------------------------------------------

Role = Literal["admin", "user", "guest"]
OrderStatus = Literal["pending", "processing", "completed", "cancelled", "refunded"]
NotificationType = Literal["info", "warning", "error", "success"]
Channel = Literal["email", "push", "sms"]
EntityType = Literal["product", "user", "order"]
Theme = Literal["light", "dark", "system"]
ExportEntity = Literal["users", "products", "orders"]
ExportFormat = Literal["json", "csv", "xml"]


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class ProductUpdate(CamelModel):
    """Partial product update. Only the fields sent are changed; `id` is immutable."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    sku: str | None = Field(default=None, min_length=1, max_length=64)
    price: float | None = Field(default=None, ge=0, examples=[249.99])
    inventory: int | None = Field(default=None, ge=0, examples=[120])


# ---------------------------------------------------------------------------
# /api/checkout
# ---------------------------------------------------------------------------

class CheckoutItem(CamelModel):
    product_id: str = Field(
        description="Product id (`prod_001`) or its number (`1`).",
        examples=["prod_001"],
    )
    quantity: int = Field(ge=1, le=1000, examples=[2])

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_product_id(cls, value: Any) -> Any:
        # Clients send product numbers as JSON numbers as often as strings.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ShippingAddress(CamelModel):
    line1: str
    city: str
    postal_code: str
    country: str = Field(min_length=2, max_length=2, examples=["US"])


class CheckoutRequest(CamelModel):
    """A cart to turn into an order.

    The customer must exist, every product must exist and have stock, and
    the payment must go through before an order is written."""

    customer_id: str = Field(min_length=1, examples=["usr_1a2b3c"])
    items: list[CheckoutItem] = Field(min_length=1, description="At least one line item.")
    payment_method: Literal["card", "bank_transfer"] = "card"
    shipping_address: ShippingAddress | None = None


# ---------------------------------------------------------------------------
# /api/notifications
# ---------------------------------------------------------------------------

class NotificationCreate(CamelModel):
    user_id: str = Field(min_length=1, examples=["usr_1a2b3c"])
    title: str = Field(min_length=1, max_length=200, examples=["Order Shipped"])
    message: str = Field(min_length=1, max_length=2000, examples=["Your order has shipped!"])
    type: NotificationType = "info"
    expires_in: float | None = Field(
        default=None,
        gt=0,
        description="Hours until the notification expires.",
        examples=[48],
    )
    channel: Channel | None = Field(
        default=None,
        description="Also deliver the message through this channel.",
        examples=["email"],
    )


class NotificationMarkRead(CamelModel):
    notification_ids: list[str] | None = None
    mark_all_read: bool = False
    user_id: str | None = None


# ---------------------------------------------------------------------------
# /api/settings
#
# Nested sections have all-optional fields so a partial section can be sent.
# Merging is shallow: whatever section arrives replaces the stored one.
# ---------------------------------------------------------------------------

class NotificationPrefs(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    email: bool | None = None
    push: bool | None = None
    sms: bool | None = None
    marketing: bool | None = None


class PrivacyPrefs(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    profile_visible: bool | None = None
    show_email: bool | None = None
    show_activity: bool | None = None


class SettingsFields(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    theme: Theme | None = None
    language: str | None = Field(default=None, min_length=2, max_length=35, examples=["en-US"])
    timezone: str | None = Field(default=None, examples=["America/Los_Angeles"])
    notifications: NotificationPrefs | None = None
    privacy: PrivacyPrefs | None = None
    preferences: dict[str, Any] | None = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value


class SettingsPatch(SettingsFields):
    user_id: str = Field(min_length=1, examples=["usr_1a2b3c"])


class SettingsReplace(CamelModel):
    user_id: str = Field(min_length=1)
    settings: SettingsFields = Field(default_factory=SettingsFields)


class SettingsOut(SettingsFields):
    """Wire shape of a stored settings record (camelCase, only keys present)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    user_id: str
    updated_at: Any = None

    # Stored values were validated on the way in.
    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        return value


SETTINGS_SECTIONS = ("theme", "language", "timezone", "notifications", "privacy", "preferences")


# ---------------------------------------------------------------------------
# /api/comments
# ---------------------------------------------------------------------------

class CommentCreate(CamelModel):
    entity_type: EntityType
    entity_id: str = Field(min_length=1, examples=["prod_001"])
    author_id: str = Field(min_length=1, examples=["usr_1a2b3c"])
    content: str = Field(min_length=1, max_length=1000)
    parent_id: str | None = None

    @field_validator("entity_id", mode="before")
    @classmethod
    def _coerce_entity_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CommentUpdate(CamelModel):
    comment_id: str = Field(min_length=1)
    action: Literal["like", "edit"]
    content: str | None = Field(default=None, max_length=1000)
    user_id: str | None = None


# ---------------------------------------------------------------------------
# /api/analytics
# ---------------------------------------------------------------------------

class AnalyticsEventIn(CamelModel):
    event_name: str = Field(min_length=1, max_length=100, examples=["signup_clicked"])
    properties: dict[str, Any] | None = None
    user_id: str | None = None


class PageViewIn(CamelModel):
    page_id: str = Field(min_length=1, max_length=500, examples=["/products"])


# ---------------------------------------------------------------------------
# /api/export
# ---------------------------------------------------------------------------

class ExportCreate(CamelModel):
    entity: ExportEntity
    format: ExportFormat = "json"
    filters: dict[str, Any] = Field(
        default_factory=dict,
        description="Exact-match filters on record fields, e.g. {\"role\": \"admin\"}.",
    )
    user_id: str | None = None


# ---------------------------------------------------------------------------
# /api/auth/login
# ---------------------------------------------------------------------------

class LoginRequest(CamelModel):
    email: str | None = None
    password: str | None = None
    remember_me: bool = False
