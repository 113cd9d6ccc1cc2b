"""
Celery tasks for billing notification emails via Mailtrap.

Each task records the outcome (sent/failed/skipped) in the email_logs table.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.workers.tasks.email_tasks.send_payment_failed_email",
    autoretry_for=(Exception,),
    max_retries=3,
    retry_backoff=True,
)
def send_payment_failed_email(
    transaction_id: str,
    subscription_id: Optional[str] = None,
    user_id: Optional[str] = None,
    email: Optional[str] = None,
) -> dict:
    """Notify the subscriber that a Paddle payment failed."""
    from app.core.database_sync import get_sync_db
    from app.services.email_service import EmailService

    with get_sync_db() as db:
        svc = EmailService(db)
        user = svc.find_user(user_id)
        to_email = email or (user.email if user else None)
        recipient_user_id = user.id if user else None

        if not to_email:
            logger.warning(
                "No recipient for payment-failed email (transaction=%s subscription=%s)",
                transaction_id, subscription_id,
            )
            return {"status": "skipped", "reason": "no_recipient"}

        if not svc.is_configured():
            logger.info("Email not configured, skipping payment-failed email for %s", to_email)
            svc.log_skipped(
                to_email, "payment_failed",
                recipient_user_id=recipient_user_id,
                transaction_id=transaction_id,
            )
            return {"status": "skipped", "reason": "email_not_configured"}

        svc.send_payment_failed_email(
            to_email,
            transaction_id,
            name=user.name if user else None,
            user_id=recipient_user_id,
        )
        return {"status": "sent", "to": to_email}
