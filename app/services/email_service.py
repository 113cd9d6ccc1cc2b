"""
EmailService — sends billing notification emails via the Mailtrap SDK and logs each attempt.

Synchronous (Celery workers).
"""
from __future__ import annotations

import html
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog
from app.models.user import User

logger = logging.getLogger(__name__)


class EmailService:
    """Sends transactional emails using Mailtrap and records every send."""

    def __init__(self, db: Session) -> None:
        self._db = db

    @staticmethod
    def is_configured() -> bool:
        """Email sending is enabled and has an API key."""
        return settings.EMAIL_ENABLED and bool(settings.MAILTRAP_API_KEY)

    def find_user(self, user_id: Optional[str]) -> Optional[User]:
        if not user_id:
            return None
        stmt = select(User).where(User.id == user_id)
        return self._db.execute(stmt).scalar_one_or_none()

    # ------------------------------------------------------------------
    # Log helper
    # ------------------------------------------------------------------

    def _log(
        self,
        *,
        recipient_email: str,
        recipient_user_id: Optional[str],
        email_type: str,
        subject: str,
        status: str,
        transaction_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> None:
        """Persist one row in email_logs."""
        entry = EmailLog(
            transaction_id=transaction_id,
            recipient_email=recipient_email,
            recipient_user_id=recipient_user_id,
            email_type=email_type,
            subject=subject,
            status=status,
            error_message=error_message,
        )
        self._db.add(entry)
        self._db.flush()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def _send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        *,
        email_type: str,
        recipient_user_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> None:
        """Send through Mailtrap and record the result."""
        import mailtrap as mt

        try:
            mail = mt.Mail(
                sender=mt.Address(
                    email=settings.MAILTRAP_SENDER_EMAIL,
                    name=settings.MAILTRAP_SENDER_NAME,
                ),
                to=[mt.Address(email=to_email)],
                subject=subject,
                html=html_body,
                category="transactional",
            )
            client = mt.MailtrapClient(token=settings.MAILTRAP_API_KEY)
            client.send(mail)

            self._log(
                recipient_email=to_email,
                recipient_user_id=recipient_user_id,
                email_type=email_type,
                subject=subject,
                status="sent",
                transaction_id=transaction_id,
            )
            logger.info("Email sent to %s: %s", to_email, subject)

        except Exception as exc:
            self._log(
                recipient_email=to_email,
                recipient_user_id=recipient_user_id,
                email_type=email_type,
                subject=subject,
                status="failed",
                transaction_id=transaction_id,
                error_message=str(exc)[:500],
            )
            # Keep the failure row even though the task is about to retry
            self._db.commit()
            raise

    def log_skipped(
        self,
        to_email: str,
        email_type: str,
        *,
        recipient_user_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
        reason: str = "email_not_configured",
    ) -> None:
        """Record that an email was not sent."""
        self._log(
            transaction_id=transaction_id,
            recipient_email=to_email,
            recipient_user_id=recipient_user_id,
            email_type=email_type,
            subject="(skipped)",
            status="skipped",
            error_message=reason,
        )

    # ------------------------------------------------------------------
    # Billing emails
    # ------------------------------------------------------------------

    def send_payment_failed_email(
        self,
        to_email: str,
        transaction_id: str,
        *,
        name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Tell the subscriber their last payment did not go through."""
        link = f"{settings.FRONTEND_URL}/dashboard/billing"
        greeting = f"Hi {html.escape(name)}," if name else "Hi,"
        subject = f"Payment failed - {settings.APP_NAME}"

        body = f"""
            <p>{greeting}</p>
            <p>We could not process the payment for your <strong>{settings.APP_NAME}</strong>
               subscription (transaction <code>{html.escape(transaction_id)}</code>).</p>
            <p>Please update your payment method to keep access to premium blocks:</p>
            <div style="text-align:center;margin:30px 0">
              <a href="{link}"
                 style="background:#111827;color:#ffffff;padding:12px 32px;border-radius:8px;
                        text-decoration:none;font-weight:700;display:inline-block">
                Update payment method
              </a>
            </div>
            """

        self._send(
            to_email, subject, _render_template(title=subject, body=body),
            email_type="payment_failed",
            recipient_user_id=user_id,
            transaction_id=transaction_id,
        )


def _render_template(title: str, body: str) -> str:
    """Inline HTML layout shared by billing emails."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width,initial-scale=1">
</head>
<body style="margin:0;padding:0;background:#f3f4f6;font-family:'Segoe UI',Helvetica,Arial,sans-serif">
  <div style="max-width:560px;margin:40px auto;background:#ffffff;border-radius:12px;
              border:1px solid #e5e7eb;overflow:hidden">
    <div style="background:#111827;padding:24px 32px">
      <h1 style="margin:0;color:#ffffff;font-size:20px">{title}</h1>
    </div>
    <div style="padding:32px;color:#1f2937;font-size:15px;line-height:1.7">
      {body}
    </div>
    <div style="padding:16px 32px;border-top:1px solid #e5e7eb;color:#6b7280;font-size:12px">
      {settings.APP_NAME} &middot; {settings.FRONTEND_URL}
    </div>
  </div>
</body>
</html>"""
