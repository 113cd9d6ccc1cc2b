"""
PaddleEvent model — record of every verified webhook delivery received from Paddle.
"""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from app.core.database import Base


class PaddleEvent(Base):
    """
    Tracks every Paddle webhook event received (processed, skipped, ignored or failed).

    Keeps the raw body so failed deliveries can be replayed by hand.
    """

    __tablename__ = "paddle_events"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()), index=True)
    event_id = Column(
        String(255),
        nullable=True,
        unique=True,
        index=True,
        comment="evt_xxx from Paddle",
    )
    event_type = Column(
        String(100),
        nullable=False,
        index=True,
        comment="subscription.created|subscription.updated|etc",
    )
    status = Column(
        String(20),
        nullable=False,
        index=True,
        comment="processed|skipped|failed|ignored",
    )
    subscription_id = Column(String(255), nullable=True, comment="sub_xxx from Paddle")
    transaction_id = Column(String(255), nullable=True, comment="txn_xxx from Paddle")
    user_id = Column(
        String(64),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    error_message = Column(Text, nullable=True)
    payload = Column(Text, nullable=True, comment="raw request body")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self) -> str:
        return (
            f"<PaddleEvent(id={self.id}, event_type='{self.event_type}', "
            f"status='{self.status}')>"
        )
