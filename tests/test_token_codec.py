from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from src.services.errors import ExpiredTokenError, InvalidTokenError
from src.services.token_codec import TokenCodec

SECRET = "unit-test-secret-0123456789abcdef0123456789"


def test_issue_and_verify_returns_claims():
    codec = TokenCodec(SECRET)
    token = codec.issue({"username": "alice", "id": "u1"})
    assert codec.verify(token) == {"username": "alice", "id": "u1"}


def test_tokens_for_same_claims_differ():
    codec = TokenCodec(SECRET)
    assert codec.issue({"email": "a@x.com"}) != codec.issue({"email": "a@x.com"})


def test_wrong_secret_is_rejected():
    token = TokenCodec(SECRET).issue({"email": "a@x.com"})
    with pytest.raises(InvalidTokenError):
        TokenCodec("another-secret-0123456789abcdef012345").verify(token)


def test_tampered_payload_is_rejected():
    codec = TokenCodec(SECRET)
    token = codec.issue({"email": "a@x.com"})
    forged = jwt.encode({"email": "evil@x.com"}, "guess", algorithm="HS256")
    header, _, signature = token.split(".")
    _, payload, _ = forged.split(".")
    with pytest.raises(InvalidTokenError):
        codec.verify(f"{header}.{payload}.{signature}")


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_malformed_tokens_are_rejected(token):
    with pytest.raises(InvalidTokenError):
        TokenCodec(SECRET).verify(token)


def test_expired_token_raises_expired_error():
    codec = TokenCodec(SECRET)
    token = codec.issue({"username": "alice"}, ttl=timedelta(seconds=-5))
    with pytest.raises(ExpiredTokenError):
        codec.verify(token)


def test_ttl_token_is_valid_before_expiry():
    codec = TokenCodec(SECRET)
    token = codec.issue({"username": "alice"}, ttl=timedelta(hours=1))
    assert codec.verify(token) == {"username": "alice"}


def test_reserved_claims_cannot_be_injected():
    codec = TokenCodec(SECRET)
    token = codec.issue({"username": "alice", "exp": 1})
    assert codec.verify(token) == {"username": "alice"}
