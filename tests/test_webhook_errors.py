"""
Webhook endpoint error mapping tests.
"""
from __future__ import annotations

import pytest
from fastapi import HTTPException, status

from app.api.v1.endpoints.webhooks import _raise_webhook_http_error
from app.services.paddle_webhook_service import (
    DatastoreUnavailableError,
    InvalidSignatureError,
    MalformedPayloadError,
    MissingSignatureError,
    PaddleWebhookError,
    WebhookNotConfiguredError,
)


@pytest.mark.parametrize(
    ("code", "expected_status"),
    [
        ("webhook_not_configured", status.HTTP_400_BAD_REQUEST),
        ("missing_signature", status.HTTP_400_BAD_REQUEST),
        ("malformed_payload", status.HTTP_400_BAD_REQUEST),
        ("invalid_signature", status.HTTP_401_UNAUTHORIZED),
        ("datastore_unavailable", status.HTTP_500_INTERNAL_SERVER_ERROR),
        ("webhook_error", status.HTTP_400_BAD_REQUEST),
    ],
)
def test_raise_webhook_http_error_maps_service_codes(
    code: str,
    expected_status: int,
) -> None:
    """
    Domain webhook errors must be translated to deterministic HTTP responses.
    """
    with pytest.raises(HTTPException) as exc_info:
        _raise_webhook_http_error(PaddleWebhookError("erro", code=code))

    assert exc_info.value.status_code == expected_status
    assert exc_info.value.detail == "erro"


@pytest.mark.parametrize(
    ("error_cls", "code"),
    [
        (WebhookNotConfiguredError, "webhook_not_configured"),
        (MissingSignatureError, "missing_signature"),
        (InvalidSignatureError, "invalid_signature"),
        (MalformedPayloadError, "malformed_payload"),
        (DatastoreUnavailableError, "datastore_unavailable"),
    ],
)
def test_error_subclasses_carry_their_code(error_cls: type, code: str) -> None:
    exc = error_cls()

    assert isinstance(exc, PaddleWebhookError)
    assert exc.code == code
    assert exc.detail
