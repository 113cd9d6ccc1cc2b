"""
Paddle signature verification tests.
"""
from __future__ import annotations

import pytest

from app.core.security import (
    compute_signature,
    parse_signature_header,
    verify_paddle_signature,
)

SECRET = "whsec_unit"
BODY = b'{"event_type":"subscription.created","data":{"id":"sub_1"}}'


def test_parse_signature_header_splits_timestamp_and_digest() -> None:
    assert parse_signature_header("ts=1671552777;h1=AbC123") == ("1671552777", "AbC123")


def test_parse_signature_header_accepts_bare_digest() -> None:
    assert parse_signature_header("  deadbeef ") == (None, "deadbeef")


def test_parse_signature_header_without_h1_yields_empty_digest() -> None:
    assert parse_signature_header("ts=1671552777") == ("1671552777", "")


def test_timestamped_signature_round_trip() -> None:
    """Signed message is ``<ts>:<body>``."""
    digest = compute_signature(SECRET, b"1700000000:" + BODY)

    assert verify_paddle_signature(BODY, f"ts=1700000000;h1={digest}", SECRET) is True


def test_bare_hex_signature_is_case_insensitive() -> None:
    digest = compute_signature(SECRET, BODY).upper()

    assert verify_paddle_signature(BODY, digest, SECRET) is True


@pytest.mark.parametrize(
    "signature",
    [
        "",
        "ts=1700000000",
        "ts=1700000000;h1=00",
        "not-a-signature",
    ],
)
def test_invalid_signatures_are_rejected(signature: str) -> None:
    assert verify_paddle_signature(BODY, signature, SECRET) is False


def test_signature_over_different_timestamp_is_rejected() -> None:
    """The timestamp is part of the signed message."""
    digest = compute_signature(SECRET, b"1700000000:" + BODY)

    assert verify_paddle_signature(BODY, f"ts=1700000001;h1={digest}", SECRET) is False


def test_signature_with_wrong_secret_is_rejected() -> None:
    digest = compute_signature("other", BODY)

    assert verify_paddle_signature(BODY, digest, SECRET) is False


@pytest.mark.parametrize("signature", ["ts=1;h1=\xe9\xe9", "\xe9" * 64, "ts=1;h1=café"])
def test_non_ascii_signatures_are_rejected(signature: str) -> None:
    """Headers arrive latin-1 decoded; non-ASCII digests must not raise."""
    assert verify_paddle_signature(BODY, signature, SECRET) is False
