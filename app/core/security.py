"""
Security utilities for Paddle webhook signature verification.
"""
import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "Paddle-Signature"


def compute_signature(secret: str, message: bytes) -> str:
    """
    Hex HMAC-SHA256 of ``message`` keyed with ``secret``.

    Args:
        secret: Shared webhook secret
        message: Bytes to sign

    Returns:
        Lower-case hex digest
    """
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def parse_signature_header(signature: str) -> tuple[Optional[str], str]:
    """
    Split a signature header into (timestamp, digest).

    Paddle Billing sends ``ts=1671552777;h1=<hex>``; a bare hex digest is
    also accepted and yields no timestamp.

    Example:
        >>> parse_signature_header("ts=1671552777;h1=ab12")
        ('1671552777', 'ab12')
        >>> parse_signature_header("ab12")
        (None, 'ab12')
    """
    if "=" not in signature:
        return None, signature.strip()

    parts: dict[str, str] = {}
    for chunk in signature.split(";"):
        if "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        parts[key.strip()] = value.strip()
    return parts.get("ts"), parts.get("h1", "")


def verify_paddle_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """
    Verify a webhook signature against the unparsed request body.

    The comparison is constant-time. With a ``ts`` component the signed
    message is ``b"<ts>:" + raw_body``, otherwise ``raw_body`` itself.

    Args:
        raw_body: Request body exactly as received
        signature: ``Paddle-Signature`` header value
        secret: Shared webhook secret

    Returns:
        True if the signature matches, False otherwise
    """
    timestamp, provided = parse_signature_header(signature)
    if not provided or not provided.isascii():
        return False

    message = raw_body if timestamp is None else timestamp.encode("utf-8") + b":" + raw_body
    expected = compute_signature(secret, message)
    return hmac.compare_digest(expected.encode("ascii"), provided.lower().encode("ascii"))
