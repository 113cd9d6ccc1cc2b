"""
Subscription model — user-plan relationship with Paddle billing.
"""
import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from app.core.database import Base


class SubscriptionStatus(str, enum.Enum):
    """Local subscription states."""

    ACTIVE = "ACTIVE"
    CANCELED = "CANCELED"
    PAST_DUE = "PAST_DUE"
    TRIALING = "TRIALING"
    INACTIVE = "INACTIVE"


class Subscription(Base):
    """
    One row per Paddle subscription. Never deleted; cancellation is a status.
    """

    __tablename__ = "subscriptions"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()), index=True)
    user_id = Column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Paddle IDs
    paddle_subscription_id = Column(String(255), nullable=False, unique=True, index=True)
    paddle_customer_id = Column(String(255), nullable=True, index=True)

    status = Column(
        String(20),
        nullable=False,
        default=SubscriptionStatus.INACTIVE.value,
        comment="ACTIVE|CANCELED|PAST_DUE|TRIALING|INACTIVE",
    )
    plan_id = Column(String(255), nullable=True, comment="Paddle price id (pri_xxx)")

    # Billing period
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    user = relationship("User", back_populates="subscriptions")

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, paddle_subscription_id='{self.paddle_subscription_id}', "
            f"status='{self.status}')>"
        )
