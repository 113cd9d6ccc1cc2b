"""
PaddleTransaction model — append-only ledger of Paddle transactions.
"""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, String

from app.core.database import Base


class PaddleTransaction(Base):
    """
    One row per Paddle transaction id; redeliveries only refresh ``status``.
    """

    __tablename__ = "paddle_transactions"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()), index=True)
    transaction_id = Column(String(255), nullable=False, unique=True, index=True)
    subscription_id = Column(String(255), nullable=True, index=True)
    customer_id = Column(String(255), nullable=True)
    user_id = Column(String(64), nullable=True, index=True)
    status = Column(
        String(20),
        nullable=False,
        comment="completed|payment_failed",
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<PaddleTransaction(transaction_id='{self.transaction_id}', "
            f"status='{self.status}')>"
        )
