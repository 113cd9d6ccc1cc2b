"""
Webhook endpoints — Paddle billing notifications.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.security import SIGNATURE_HEADER
from app.services.paddle_webhook_service import (
    PaddleWebhookError,
    PaddleWebhookService,
)

router = APIRouter()

_ERROR_STATUS = {
    "webhook_not_configured": status.HTTP_400_BAD_REQUEST,
    "missing_signature": status.HTTP_400_BAD_REQUEST,
    "malformed_payload": status.HTTP_400_BAD_REQUEST,
    "invalid_signature": status.HTTP_401_UNAUTHORIZED,
    "datastore_unavailable": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _raise_webhook_http_error(exc: PaddleWebhookError) -> None:
    """
    Convert domain error to HTTP response.
    """
    status_code = _ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=status_code, detail=exc.detail) from exc


@router.post("/paddle", status_code=status.HTTP_200_OK)
async def paddle_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """
    Paddle webhook endpoint — no JWT auth, uses Paddle signature verification.

    Handler-level failures are still acknowledged with 200 so Paddle does not
    retry deliveries that only manual intervention can fix.
    """
    svc = PaddleWebhookService.from_settings()
    payload = await request.body()
    signature = request.headers.get(SIGNATURE_HEADER)

    try:
        outcome = await svc.handle_webhook_event(db, payload, signature)
    except PaddleWebhookError as exc:
        _raise_webhook_http_error(exc)

    return {
        "received": True,
        "event_type": outcome.event_type,
        "status": outcome.result.status,
    }
