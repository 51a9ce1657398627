from __future__ import annotations

import time

import jwt
import pytest

from auth import security


def test_token_carries_user_claims():
    token = security.build_access_token(user_id=7, username="registrar1", role="Registrar")

    claims = security.decode_access_token(token)

    assert (claims.user_id, claims.username, claims.role) == (7, "registrar1", "Registrar")
    assert claims.expires_at > time.time()


def test_expired_token_is_rejected(monkeypatch):
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MIN", "-1")
    token = security.build_access_token(user_id=7, username="registrar1", role="Registrar")

    with pytest.raises(security.AuthSecurityError, match="expired"):
        security.decode_access_token(token)


@pytest.mark.parametrize(
    "payload",
    [
        {"sub": "7", "exp": 4_000_000_000, "iss": "someone-else"},
        {"sub": "7", "exp": 4_000_000_000},
        {"sub": "admin", "exp": 4_000_000_000, "iss": security.TOKEN_ISSUER},
    ],
)
def test_foreign_or_malformed_tokens_are_rejected(payload):
    token = jwt.encode(payload, security.jwt_secret(), algorithm="HS256")

    with pytest.raises(security.AuthSecurityError):
        security.decode_access_token(token)


def test_token_signed_with_another_secret_is_rejected():
    token = jwt.encode({"sub": "7", "exp": 4_000_000_000, "iss": security.TOKEN_ISSUER}, "other-secret-value", algorithm="HS256")

    with pytest.raises(security.AuthSecurityError, match="Invalid"):
        security.decode_access_token(token)


def test_password_hash_round_trip():
    hashed = security.hash_password("s3cret-pass")

    assert security.verify_password("s3cret-pass", hashed)
    assert not security.verify_password("wrong-pass", hashed)
    assert not security.verify_password("s3cret-pass", "not-a-bcrypt-hash")


@pytest.mark.parametrize(("raw", "rounds"), [("", 12), ("2", 4), ("40", 31), ("many", 12)])
def test_bcrypt_rounds_are_bounded(monkeypatch, raw, rounds):
    monkeypatch.setenv("BCRYPT_ROUNDS", raw)

    assert security.bcrypt_rounds() == rounds
