"""
Subscription service — atomic persistence operations keyed by Paddle ids.

Every write is a single statement (INSERT ... ON CONFLICT DO UPDATE or
UPDATE ... WHERE paddle_subscription_id = :id) so concurrent deliveries for
the same subscription cannot lose updates.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.paddle_transaction import PaddleTransaction
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.user import User
from app.services.plan_service import (
    ENTITLED_STATUSES,
    TIER_RANK,
    PlanTier,
    plan_rank,
    tier_for_rank,
)

TRANSACTION_COMPLETED = "completed"
TRANSACTION_PAYMENT_FAILED = "payment_failed"


def dialect_insert(db: AsyncSession, model: Any) -> Any:
    """INSERT construct with ``on_conflict_*`` support for the bound dialect."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)


class SubscriptionService:
    """
    Finds, upserts and updates subscription rows by external Paddle id.
    """

    @staticmethod
    async def find_by_paddle_id(
        db: AsyncSession, paddle_subscription_id: str,
    ) -> Optional[Subscription]:
        stmt = (
            select(Subscription)
            .where(Subscription.paddle_subscription_id == paddle_subscription_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def user_exists(db: AsyncSession, user_id: str) -> bool:
        stmt = select(User.id).where(User.id == user_id)
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def upsert_by_paddle_id(
        db: AsyncSession,
        *,
        user_id: str,
        paddle_subscription_id: str,
        status: SubscriptionStatus,
        plan_id: Optional[str],
        current_period_end: Optional[datetime],
        cancel_at_period_end: bool = False,
        paddle_customer_id: Optional[str] = None,
    ) -> str:
        """
        Create the subscription or refresh its billing fields.

        The owner is only written on insert, so an existing external id is
        never moved to a different user.

        Returns:
            The user id that owns the row after the write.
        """
        now = datetime.utcnow()
        billing_fields = {
            "status": status.value,
            "plan_id": plan_id,
            "current_period_end": current_period_end,
            "cancel_at_period_end": cancel_at_period_end,
        }
        stmt = dialect_insert(db, Subscription).values(
            user_id=user_id,
            paddle_subscription_id=paddle_subscription_id,
            paddle_customer_id=paddle_customer_id,
            created_at=now,
            updated_at=now,
            **billing_fields,
        )
        set_ = {**billing_fields, "updated_at": now}
        if paddle_customer_id:
            set_["paddle_customer_id"] = paddle_customer_id
        stmt = stmt.on_conflict_do_update(
            index_elements=["paddle_subscription_id"],
            set_=set_,
        ).returning(Subscription.user_id)

        owner_id = (await db.execute(stmt)).scalar_one()
        await db.flush()
        return owner_id

    @staticmethod
    async def update_by_paddle_id(
        db: AsyncSession,
        paddle_subscription_id: str,
        **values: Any,
    ) -> Optional[str]:
        """
        Update columns of the row matching the external id.

        Returns:
            Owner user id, or None when no row matched.
        """
        if isinstance(values.get("status"), SubscriptionStatus):
            values["status"] = values["status"].value
        stmt = (
            update(Subscription)
            .where(Subscription.paddle_subscription_id == paddle_subscription_id)
            .values(**values)
            .returning(Subscription.user_id)
        )
        owner_id = (await db.execute(stmt)).scalar_one_or_none()
        await db.flush()
        return owner_id

    @staticmethod
    async def cancel_by_paddle_id(
        db: AsyncSession,
        paddle_subscription_id: str,
        canceled_at: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        Mark the subscription CANCELED; the period end becomes ``canceled_at``
        when Paddle provides it and is left untouched otherwise.
        """
        values: dict[str, Any] = {
            "status": SubscriptionStatus.CANCELED,
            "cancel_at_period_end": False,
        }
        if canceled_at is not None:
            values["current_period_end"] = canceled_at
        return await SubscriptionService.update_by_paddle_id(
            db, paddle_subscription_id, **values,
        )

    @staticmethod
    async def sync_user_plan_tier(db: AsyncSession, user_id: str) -> PlanTier:
        """
        Set the user's tier to the best one among their entitled subscriptions.

        One UPDATE with a scalar subquery over the owner's subscriptions,
        including writes still pending in the caller's transaction.

        Returns:
            The tier written, FREE when the user does not exist.
        """
        best_rank = (
            select(func.coalesce(func.max(plan_rank(Subscription.plan_id)), TIER_RANK[PlanTier.FREE]))
            .where(
                Subscription.user_id == user_id,
                Subscription.status.in_(sorted(s.value for s in ENTITLED_STATUSES)),
            )
            .scalar_subquery()
        )
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(plan_tier=tier_for_rank(best_rank))
            .returning(User.plan_tier)
            .execution_options(synchronize_session=False)
        )
        tier = (await db.execute(stmt)).scalar_one_or_none()
        await db.flush()
        return PlanTier(tier) if tier else PlanTier.FREE

    @staticmethod
    async def record_transaction(
        db: AsyncSession,
        *,
        transaction_id: str,
        status: str,
        subscription_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        """
        Idempotent ledger insert keyed by Paddle transaction id.

        An existing row only changes ``status``, and a completed transaction
        is never moved back to payment_failed.

        Returns:
            True when the row was inserted or its status changed; False for
            a redelivery that left the ledger as it was.
        """
        now = datetime.utcnow()
        stmt = dialect_insert(db, PaddleTransaction).values(
            transaction_id=transaction_id,
            subscription_id=subscription_id,
            customer_id=customer_id,
            user_id=user_id,
            status=status,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["transaction_id"],
            set_={"status": stmt.excluded.status, "updated_at": now},
            where=and_(
                PaddleTransaction.status != TRANSACTION_COMPLETED,
                PaddleTransaction.status != stmt.excluded.status,
            ),
        ).returning(PaddleTransaction.id)

        changed = (await db.execute(stmt)).scalar_one_or_none() is not None
        await db.flush()
        return changed
