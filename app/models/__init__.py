"""
Database Models Package
SQLAlchemy ORM models for PostgreSQL.
"""

from app.models.user import User
from app.models.subscription import Subscription, SubscriptionStatus
from app.models.paddle_event import PaddleEvent
from app.models.paddle_transaction import PaddleTransaction
from app.models.email_log import EmailLog

__all__ = [
    "User",
    "Subscription",
    "SubscriptionStatus",
    "PaddleEvent",
    "PaddleTransaction",
    "EmailLog",
]
