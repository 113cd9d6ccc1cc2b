"""
Pydantic schemas for Paddle webhook payloads.

Each known ``event_type`` parses into its own model; anything else becomes
``UnknownEvent`` so new Paddle event types never fail validation.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Database columns store naive UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PaddlePrice(BaseModel):
    id: str


class PaddleItem(BaseModel):
    price: Optional[PaddlePrice] = None
    quantity: Optional[int] = None


class PaddleCustomData(BaseModel):
    """Checkout ``customData`` echoed back by Paddle."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: Optional[str] = Field(default=None, alias="userId")
    email: Optional[str] = None


class PaddleScheduledChange(BaseModel):
    action: Optional[str] = None
    effective_at: Optional[datetime] = None

    @field_validator("effective_at")
    @classmethod
    def naive_effective_at(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)


class SubscriptionData(BaseModel):
    """Paddle subscription entity, as carried by ``subscription.*`` events."""

    id: str
    customer_id: Optional[str] = None
    status: Optional[str] = None
    items: Optional[list[PaddleItem]] = None
    next_billed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    scheduled_change: Optional[PaddleScheduledChange] = None
    custom_data: Optional[PaddleCustomData] = None

    @field_validator("next_billed_at", "canceled_at")
    @classmethod
    def naive_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _to_naive_utc(value)

    @property
    def price_id(self) -> Optional[str]:
        """Price of the first line item, if any."""
        if not self.items:
            return None
        price = self.items[0].price
        return price.id if price else None

    @property
    def user_id(self) -> Optional[str]:
        return self.custom_data.user_id if self.custom_data else None

    @property
    def cancel_at_period_end(self) -> bool:
        return (
            self.scheduled_change is not None
            and self.scheduled_change.action == "cancel"
        )

    @property
    def period_end(self) -> Optional[datetime]:
        """
        End of the paid period: next billing date, or the scheduled
        cancellation date once renewal has been switched off.
        """
        if self.next_billed_at is not None:
            return self.next_billed_at
        if self.cancel_at_period_end:
            return self.scheduled_change.effective_at
        return None


class TransactionData(BaseModel):
    """Paddle transaction entity, as carried by ``transaction.*`` events."""

    id: str
    subscription_id: Optional[str] = None
    customer_id: Optional[str] = None
    status: Optional[str] = None
    custom_data: Optional[PaddleCustomData] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.custom_data.user_id if self.custom_data else None

    @property
    def email(self) -> Optional[str]:
        return self.custom_data.email if self.custom_data else None


class PaddleEventBase(BaseModel):
    """Envelope shared by every notification."""

    event_id: Optional[str] = None
    event_type: str
    occurred_at: Optional[datetime] = None


class SubscriptionCreatedEvent(PaddleEventBase):
    event_type: Literal["subscription.created"]
    data: SubscriptionData


class SubscriptionUpdatedEvent(PaddleEventBase):
    event_type: Literal["subscription.updated"]
    data: SubscriptionData


class SubscriptionCancelledEvent(PaddleEventBase):
    # Paddle Billing spells it "canceled"; older integrations send "cancelled".
    event_type: Literal["subscription.cancelled", "subscription.canceled"]
    data: SubscriptionData


class TransactionCompletedEvent(PaddleEventBase):
    event_type: Literal["transaction.completed"]
    data: TransactionData


class TransactionPaymentFailedEvent(PaddleEventBase):
    event_type: Literal["transaction.payment_failed"]
    data: TransactionData


class UnknownEvent(PaddleEventBase):
    data: Any = None


PaddleWebhookEvent = Union[
    SubscriptionCreatedEvent,
    SubscriptionUpdatedEvent,
    SubscriptionCancelledEvent,
    TransactionCompletedEvent,
    TransactionPaymentFailedEvent,
    UnknownEvent,
]

EVENT_MODELS: dict[str, type[PaddleEventBase]] = {
    "subscription.created": SubscriptionCreatedEvent,
    "subscription.updated": SubscriptionUpdatedEvent,
    "subscription.cancelled": SubscriptionCancelledEvent,
    "subscription.canceled": SubscriptionCancelledEvent,
    "transaction.completed": TransactionCompletedEvent,
    "transaction.payment_failed": TransactionPaymentFailedEvent,
}


def parse_webhook_event(payload: Any) -> PaddleWebhookEvent:
    """
    Parse a decoded JSON body into its event variant.

    Raises:
        ValueError: body is not an object, has no ``event_type``, or the
            ``data`` of a known event type does not match its schema
            (pydantic's ``ValidationError`` is a ``ValueError``).
    """
    if not isinstance(payload, dict):
        raise ValueError("Webhook body must be a JSON object.")
    event_type = payload.get("event_type")
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("Webhook body has no event_type.")
    model = EVENT_MODELS.get(event_type, UnknownEvent)
    return model.model_validate(payload)
