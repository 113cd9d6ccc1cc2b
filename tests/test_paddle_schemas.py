"""
Paddle payload parsing tests.
"""
from __future__ import annotations

from datetime import datetime

import pytest

from app.schemas.paddle import (
    SubscriptionCancelledEvent,
    SubscriptionCreatedEvent,
    TransactionPaymentFailedEvent,
    UnknownEvent,
    parse_webhook_event,
)


def _subscription_payload(**data: object) -> dict:
    return {
        "event_id": "evt_1",
        "event_type": "subscription.created",
        "data": {"id": "sub_1", "status": "active", **data},
    }


def test_known_event_type_parses_into_its_model() -> None:
    event = parse_webhook_event(
        _subscription_payload(
            items=[{"price": {"id": "pri_pro"}, "quantity": 1}],
            custom_data={"userId": "user_1"},
            next_billed_at="2026-02-01T03:00:00+03:00",
        )
    )

    assert isinstance(event, SubscriptionCreatedEvent)
    assert event.data.price_id == "pri_pro"
    assert event.data.user_id == "user_1"
    # stored as naive UTC
    assert event.data.period_end == datetime(2026, 2, 1, 0, 0)
    assert event.data.cancel_at_period_end is False


def test_custom_data_accepts_snake_case_user_id() -> None:
    event = parse_webhook_event(_subscription_payload(custom_data={"user_id": "user_7"}))

    assert event.data.user_id == "user_7"


def test_missing_items_yield_no_price() -> None:
    event = parse_webhook_event(_subscription_payload())

    assert event.data.price_id is None
    assert event.data.user_id is None
    assert event.data.period_end is None


def test_scheduled_cancel_uses_effective_at_as_period_end() -> None:
    event = parse_webhook_event(
        _subscription_payload(
            next_billed_at=None,
            scheduled_change={"action": "cancel", "effective_at": "2026-03-01T00:00:00Z"},
        )
    )

    assert event.data.cancel_at_period_end is True
    assert event.data.period_end == datetime(2026, 3, 1)


@pytest.mark.parametrize("event_type", ["subscription.cancelled", "subscription.canceled"])
def test_both_cancel_spellings_are_recognised(event_type: str) -> None:
    event = parse_webhook_event({"event_type": event_type, "data": {"id": "sub_1"}})

    assert isinstance(event, SubscriptionCancelledEvent)


def test_transaction_event_exposes_custom_data_fields() -> None:
    event = parse_webhook_event(
        {
            "event_type": "transaction.payment_failed",
            "data": {
                "id": "txn_1",
                "subscription_id": "sub_1",
                "custom_data": {"userId": "user_1", "email": "a@example.com"},
            },
        }
    )

    assert isinstance(event, TransactionPaymentFailedEvent)
    assert event.data.user_id == "user_1"
    assert event.data.email == "a@example.com"


def test_unknown_event_type_keeps_raw_data() -> None:
    event = parse_webhook_event({"event_type": "address.created", "data": {"id": "add_1"}})

    assert isinstance(event, UnknownEvent)
    assert event.data == {"id": "add_1"}


@pytest.mark.parametrize(
    "payload",
    [
        [],
        "subscription.created",
        {"data": {"id": "sub_1"}},
        {"event_type": ""},
        {"event_type": "subscription.created", "data": {"status": "active"}},
    ],
)
def test_invalid_payloads_raise_value_error(payload: object) -> None:
    with pytest.raises(ValueError):
        parse_webhook_event(payload)
