"""Tests for token handling, log scrubbing and rate parsing."""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

import pytest
from jose import JWTError

from app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from app.security.logging_filters import SensitiveFilter, scrub
from app.security.rate_limit import parse_rate


def test_password_hash_round_trip() -> None:
    hashed = get_password_hash("s3cret-pass")
    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret-pass", "not-a-bcrypt-hash")


def test_token_carries_subject_and_hints() -> None:
    subject = str(uuid.uuid4())
    token = create_access_token(subject, role="student", tier="free")
    claims = decode_access_token(token)
    assert claims["sub"] == subject
    assert claims["role"] == "student"
    assert claims["tier"] == "free"


def test_expired_token_is_rejected() -> None:
    token = create_access_token("someone", expires_delta=timedelta(seconds=-5))
    with pytest.raises(JWTError):
        decode_access_token(token)


def test_scrub_masks_credentials() -> None:
    message = 'Authorization: Bearer abc.def.ghi {"password": "hunter2"}'
    cleaned = scrub(message)
    assert "abc.def.ghi" not in cleaned
    assert "hunter2" not in cleaned
    assert "**REDACTED**" in cleaned


def test_filter_formats_args_before_scrubbing() -> None:
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="issued %s",
        args=("Bearer token-value",),
        exc_info=None,
    )
    assert SensitiveFilter().filter(record)
    assert record.getMessage() == "issued **REDACTED**"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("10/minute", (10, 60)),
        ("5 / seconds", (5, 1)),
        ("1000/day", (1000, 86400)),
        ("many/minute", (100, 60)),
        ("10/fortnight", (100, 60)),
        ("0/minute", (100, 60)),
    ],
)
def test_parse_rate(value: str, expected: tuple[int, int]) -> None:
    assert parse_rate(value) == expected
