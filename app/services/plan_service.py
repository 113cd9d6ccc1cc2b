"""
Plan tier classification — maps Paddle price ids to internal tiers.
"""
from __future__ import annotations

import enum
from typing import Any, Optional

from sqlalchemy import case, literal

from app.core.config import settings
from app.models.subscription import SubscriptionStatus


class PlanTier(str, enum.Enum):
    FREE = "FREE"
    PRO = "PRO"
    TEAM = "TEAM"


# Higher rank wins when a user holds several subscriptions
TIER_RANK = {
    PlanTier.FREE: 0,
    PlanTier.PRO: 1,
    PlanTier.TEAM: 2,
}

# Statuses under which the subscriber keeps the paid tier
ENTITLED_STATUSES = frozenset({
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.TRIALING,
    SubscriptionStatus.PAST_DUE,
})

_PADDLE_STATUS_MAP = {
    "active": SubscriptionStatus.ACTIVE,
    "trialing": SubscriptionStatus.TRIALING,
    "past_due": SubscriptionStatus.PAST_DUE,
    "canceled": SubscriptionStatus.CANCELED,
    "cancelled": SubscriptionStatus.CANCELED,
}


def price_tier_map() -> dict[str, PlanTier]:
    """Known price ids from configuration. Unset ids are left out."""
    mapping: dict[str, PlanTier] = {}
    if settings.PADDLE_PRO_PRICE_ID:
        mapping[settings.PADDLE_PRO_PRICE_ID] = PlanTier.PRO
    if settings.PADDLE_TEAM_PRICE_ID:
        mapping[settings.PADDLE_TEAM_PRICE_ID] = PlanTier.TEAM
    return mapping


def plan_rank(price_column: Any) -> Any:
    """
    SQL expression ranking the tier of ``price_column``.

    Unknown or NULL price ids rank as FREE.
    """
    free_rank = TIER_RANK[PlanTier.FREE]
    whens = [
        (price_column == price_id, TIER_RANK[tier])
        for price_id, tier in price_tier_map().items()
    ]
    if not whens:
        return literal(free_rank)
    return case(*whens, else_=free_rank)


def tier_for_rank(rank: Any) -> Any:
    """SQL expression turning a rank back into the tier name."""
    return case(
        *[
            (rank == value, tier.value)
            for tier, value in TIER_RANK.items()
            if tier is not PlanTier.FREE
        ],
        else_=PlanTier.FREE.value,
    )


def map_paddle_status(raw_status: Optional[str]) -> SubscriptionStatus:
    """
    Translate a Paddle subscription status into the local enum.

    ``paused``, missing and unrecognised values become INACTIVE.
    """
    if not raw_status:
        return SubscriptionStatus.INACTIVE
    return _PADDLE_STATUS_MAP.get(raw_status.lower(), SubscriptionStatus.INACTIVE)
