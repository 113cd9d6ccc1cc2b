"""
EmailLog model — one row per billing notification attempt.
"""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from app.core.database import Base


class EmailLog(Base):
    """
    Outcome of a notification email: sent, failed or skipped.

    ``transaction_id`` is the Paddle transaction the email is about, so a
    payment failure can be traced to the message it produced.
    """

    __tablename__ = "email_logs"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid4()))
    transaction_id = Column(String(64), nullable=True, index=True)
    recipient_email = Column(String(255), nullable=False)
    recipient_user_id = Column(
        String(64),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    email_type = Column(String(50), nullable=False, comment="payment_failed")
    subject = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, comment="sent|failed|skipped")
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<EmailLog(type='{self.email_type}', transaction='{self.transaction_id}', "
            f"status='{self.status}')>"
        )
