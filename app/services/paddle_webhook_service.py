"""
Paddle webhook service — signature check, event dispatch and subscription
reconciliation.

Handlers never let an exception escape to the caller: each returns a
``HandlerResult`` and the delivery is acknowledged, except when the database
itself is unreachable, which is surfaced so Paddle retries.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import verify_paddle_signature
from app.models.paddle_event import PaddleEvent
from app.schemas.paddle import (
    PaddleWebhookEvent,
    SubscriptionCancelledEvent,
    SubscriptionCreatedEvent,
    SubscriptionUpdatedEvent,
    TransactionCompletedEvent,
    TransactionData,
    TransactionPaymentFailedEvent,
    parse_webhook_event,
)
from app.services.plan_service import map_paddle_status
from app.services.subscription_service import (
    TRANSACTION_COMPLETED,
    TRANSACTION_PAYMENT_FAILED,
    SubscriptionService,
    dialect_insert,
)

logger = logging.getLogger(__name__)

# Errors meaning the database could not be reached at all
DATASTORE_ERRORS = (OperationalError, InterfaceError, OSError)

PROCESSED = "processed"
SKIPPED = "skipped"
FAILED = "failed"
IGNORED = "ignored"


class PaddleWebhookError(Exception):
    """Domain error for webhook deliveries."""

    def __init__(self, detail: str, code: str = "webhook_error") -> None:
        self.detail = detail
        self.code = code
        super().__init__(detail)


class WebhookNotConfiguredError(PaddleWebhookError):
    """Shared secret not configured."""

    def __init__(self, detail: str = "Paddle webhook secret is not configured.") -> None:
        super().__init__(detail, code="webhook_not_configured")


class MissingSignatureError(PaddleWebhookError):
    def __init__(self, detail: str = "Missing Paddle-Signature header.") -> None:
        super().__init__(detail, code="missing_signature")


class InvalidSignatureError(PaddleWebhookError):
    def __init__(self, detail: str = "Invalid webhook signature.") -> None:
        super().__init__(detail, code="invalid_signature")


class MalformedPayloadError(PaddleWebhookError):
    def __init__(self, detail: str = "Malformed webhook payload.") -> None:
        super().__init__(detail, code="malformed_payload")


class DatastoreUnavailableError(PaddleWebhookError):
    def __init__(self, detail: str = "Datastore unavailable.") -> None:
        super().__init__(detail, code="datastore_unavailable")


@dataclass(frozen=True)
class HandlerResult:
    """Outcome of one reconciliation handler."""

    status: str
    subscription_id: Optional[str] = None
    transaction_id: Optional[str] = None
    user_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def processed(cls, **ids: Any) -> HandlerResult:
        return cls(status=PROCESSED, **ids)

    @classmethod
    def skipped(cls, reason: str, **ids: Any) -> HandlerResult:
        return cls(status=SKIPPED, reason=reason, **ids)

    @classmethod
    def failed(cls, reason: str, **ids: Any) -> HandlerResult:
        return cls(status=FAILED, reason=reason, **ids)


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    result: HandlerResult


Handler = Callable[[AsyncSession, Any], Awaitable[HandlerResult]]


class PaddleWebhookService:
    """
    Verifies and applies Paddle webhook deliveries.

    Usage:
        svc = PaddleWebhookService.from_settings()
        outcome = await svc.handle_webhook_event(db, body, signature)
    """

    def __init__(self, *, webhook_secret: str) -> None:
        self._webhook_secret = webhook_secret
        self._handlers: dict[str, Handler] = {
            "subscription.created": self._handle_subscription_created,
            "subscription.updated": self._handle_subscription_updated,
            "subscription.cancelled": self._handle_subscription_cancelled,
            "subscription.canceled": self._handle_subscription_cancelled,
            "transaction.completed": self._handle_transaction_completed,
            "transaction.payment_failed": self._handle_payment_failed,
        }

    @classmethod
    def from_settings(cls) -> PaddleWebhookService:
        return cls(webhook_secret=settings.PADDLE_WEBHOOK_SECRET)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def verify_signature(self, payload: bytes, signature: Optional[str]) -> None:
        """
        Check the signature of the raw body.

        Raises:
            WebhookNotConfiguredError: no shared secret configured.
            MissingSignatureError: request carried no signature header.
            InvalidSignatureError: signature does not match.
        """
        if not self._webhook_secret:
            logger.error("Paddle webhook rejected: PADDLE_WEBHOOK_SECRET not configured")
            raise WebhookNotConfiguredError()
        if not signature:
            logger.warning("Paddle webhook rejected: missing signature header")
            raise MissingSignatureError()
        if not verify_paddle_signature(payload, signature, self._webhook_secret):
            logger.warning(
                "security: Paddle webhook signature mismatch (body=%d bytes)", len(payload),
            )
            raise InvalidSignatureError()

    @staticmethod
    def parse_event(payload: bytes) -> PaddleWebhookEvent:
        """
        Decode and classify the body.

        Raises:
            MalformedPayloadError: invalid JSON or a known event with bad data.
        """
        try:
            return parse_webhook_event(json.loads(payload))
        except ValueError as exc:
            raise MalformedPayloadError(f"Malformed webhook payload: {str(exc)[:200]}") from exc

    async def handle_webhook_event(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: Optional[str],
    ) -> WebhookOutcome:
        """
        Verify, dispatch and apply one delivery.

        Unknown event types are logged and acknowledged without any write.

        Raises:
            PaddleWebhookError: signature, configuration, payload or
                datastore-connectivity problems.
        """
        self.verify_signature(payload, signature)
        event = self.parse_event(payload)
        event_type = event.event_type

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info("Paddle webhook ignored: unhandled event type %s", event_type)
            return WebhookOutcome(event_type=event_type, result=HandlerResult(status=IGNORED))

        try:
            result = await handler(db, event)
            await db.commit()
        except DATASTORE_ERRORS as exc:
            await db.rollback()
            logger.exception("Paddle webhook datastore error: event_type=%s", event_type)
            raise DatastoreUnavailableError() from exc
        except Exception as exc:
            await db.rollback()
            logger.exception("Paddle webhook handler raised: event_type=%s", event_type)
            result = HandlerResult.failed(str(exc)[:500], **self._external_ids(event))

        if result.status == FAILED:
            logger.error(
                "Paddle webhook not applied: event_type=%s event_id=%s ids=%s reason=%s payload=%s",
                event_type,
                event.event_id,
                self._external_ids(event),
                result.reason,
                payload.decode("utf-8", errors="replace"),
            )
        else:
            logger.info("Paddle webhook %s: %s", result.status, event_type)

        await self._log_event(db, event=event, result=result, payload=payload)
        return WebhookOutcome(event_type=event_type, result=result)

    # ------------------------------------------------------------------
    # Internal webhook handlers
    # ------------------------------------------------------------------

    async def _handle_subscription_created(
        self, db: AsyncSession, event: SubscriptionCreatedEvent,
    ) -> HandlerResult:
        """subscription.created — upsert the subscription for the user in custom_data."""
        data = event.data
        user_id = data.user_id
        if not user_id:
            return HandlerResult.failed("missing_user_id", subscription_id=data.id)
        if not await SubscriptionService.user_exists(db, user_id):
            return HandlerResult.failed("user_not_found", subscription_id=data.id)

        status = map_paddle_status(data.status)
        owner_id = await SubscriptionService.upsert_by_paddle_id(
            db,
            user_id=user_id,
            paddle_subscription_id=data.id,
            paddle_customer_id=data.customer_id,
            status=status,
            plan_id=data.price_id,
            current_period_end=data.period_end,
            cancel_at_period_end=data.cancel_at_period_end,
        )
        if owner_id != user_id:
            logger.warning(
                "Subscription %s is owned by user %s; custom_data user %s ignored",
                data.id, owner_id, user_id,
            )

        tier = await SubscriptionService.sync_user_plan_tier(db, owner_id)
        logger.info("Subscription created for user %s: %s", owner_id, tier.value)
        return HandlerResult.processed(subscription_id=data.id, user_id=owner_id)

    async def _handle_subscription_updated(
        self, db: AsyncSession, event: SubscriptionUpdatedEvent,
    ) -> HandlerResult:
        """subscription.updated — refresh status/plan/period on the matching row."""
        data = event.data
        status = map_paddle_status(data.status)
        owner_id = await SubscriptionService.update_by_paddle_id(
            db,
            data.id,
            status=status,
            plan_id=data.price_id,
            current_period_end=data.period_end,
            cancel_at_period_end=data.cancel_at_period_end,
        )
        if owner_id is None:
            logger.info("Subscription %s not found, update dropped", data.id)
            return HandlerResult.skipped("subscription_not_found", subscription_id=data.id)

        tier = await SubscriptionService.sync_user_plan_tier(db, owner_id)
        logger.info("Subscription updated: %s -> %s", data.id, tier.value)
        return HandlerResult.processed(subscription_id=data.id, user_id=owner_id)

    async def _handle_subscription_cancelled(
        self, db: AsyncSession, event: SubscriptionCancelledEvent,
    ) -> HandlerResult:
        """subscription.cancelled — mark canceled and re-derive the owner's tier."""
        data = event.data
        owner_id = await SubscriptionService.cancel_by_paddle_id(
            db, data.id, canceled_at=data.canceled_at,
        )
        if owner_id is None:
            logger.info("Subscription %s not found, cancellation dropped", data.id)
            return HandlerResult.skipped("subscription_not_found", subscription_id=data.id)

        tier = await SubscriptionService.sync_user_plan_tier(db, owner_id)
        logger.info("Subscription cancelled: %s, user %s now %s", data.id, owner_id, tier.value)
        return HandlerResult.processed(subscription_id=data.id, user_id=owner_id)

    async def _handle_transaction_completed(
        self, db: AsyncSession, event: TransactionCompletedEvent,
    ) -> HandlerResult:
        """transaction.completed — ledger entry only."""
        data = event.data
        user_id = await self._resolve_transaction_user(db, data)
        await SubscriptionService.record_transaction(
            db,
            transaction_id=data.id,
            status=TRANSACTION_COMPLETED,
            subscription_id=data.subscription_id,
            customer_id=data.customer_id,
            user_id=user_id,
        )
        logger.info("Transaction completed: %s for customer %s", data.id, data.customer_id)
        return HandlerResult.processed(
            transaction_id=data.id, subscription_id=data.subscription_id, user_id=user_id,
        )

    async def _handle_payment_failed(
        self, db: AsyncSession, event: TransactionPaymentFailedEvent,
    ) -> HandlerResult:
        """transaction.payment_failed — ledger entry and payment-failed email."""
        data = event.data
        user_id = await self._resolve_transaction_user(db, data)
        newly_failed = await SubscriptionService.record_transaction(
            db,
            transaction_id=data.id,
            status=TRANSACTION_PAYMENT_FAILED,
            subscription_id=data.subscription_id,
            customer_id=data.customer_id,
            user_id=user_id,
        )
        logger.info("Payment failed: %s for customer %s", data.id, data.customer_id)
        if newly_failed:
            self._notify_payment_failed(data, user_id)
        else:
            logger.info("Transaction %s already recorded, notification not repeated", data.id)
        return HandlerResult.processed(
            transaction_id=data.id, subscription_id=data.subscription_id, user_id=user_id,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _resolve_transaction_user(
        db: AsyncSession, data: TransactionData,
    ) -> Optional[str]:
        """
        Known user from custom_data, else the owner of the linked subscription.

        Never returns an id that has no users row.
        """
        if data.user_id and await SubscriptionService.user_exists(db, data.user_id):
            return data.user_id
        if not data.subscription_id:
            return None
        sub = await SubscriptionService.find_by_paddle_id(db, data.subscription_id)
        return sub.user_id if sub else None

    @staticmethod
    def _notify_payment_failed(data: TransactionData, user_id: Optional[str]) -> None:
        """Enqueue the notification email; a broker failure never fails the webhook."""
        try:
            from app.workers.tasks.email_tasks import send_payment_failed_email
            send_payment_failed_email.delay(
                data.id,
                subscription_id=data.subscription_id,
                user_id=user_id,
                email=data.email,
            )
        except Exception:
            logger.exception("Could not enqueue payment-failed email (transaction=%s)", data.id)

    @staticmethod
    def _external_ids(event: PaddleWebhookEvent) -> dict[str, Optional[str]]:
        data = event.data
        if isinstance(data, TransactionData):
            return {"transaction_id": data.id, "subscription_id": data.subscription_id}
        return {"subscription_id": getattr(data, "id", None)}

    async def _log_event(
        self,
        db: AsyncSession,
        *,
        event: PaddleWebhookEvent,
        result: HandlerResult,
        payload: bytes,
    ) -> None:
        """Persist a PaddleEvent record for admin visibility and manual replay."""
        now = datetime.utcnow()
        try:
            stmt = dialect_insert(db, PaddleEvent).values(
                event_id=event.event_id,
                event_type=event.event_type,
                status=result.status,
                subscription_id=result.subscription_id,
                transaction_id=result.transaction_id,
                user_id=result.user_id if result.status != FAILED else None,
                error_message=result.reason,
                payload=payload.decode("utf-8", errors="replace"),
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["event_id"],
                set_={
                    "status": result.status,
                    "error_message": result.reason,
                    "updated_at": now,
                },
            )
            await db.execute(stmt)
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Failed to persist PaddleEvent (event_id=%s)", event.event_id)
