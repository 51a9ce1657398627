"""
Password hashing and access tokens for staff accounts.

Tokens are HS256 JWTs carrying the user id (`sub`), username and role. The
role in a token is informational only: every request re-reads the user row,
so an archived or re-roled account loses access immediately.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Any

import bcrypt
import jwt

TOKEN_ISSUER = "academic-records"
DEFAULT_JWT_SECRET = "dev-change-this-secret"
DEFAULT_BCRYPT_ROUNDS = 12


class AuthSecurityError(RuntimeError):
    pass


@dataclass(frozen=True)
class AccessClaims:
    user_id: int
    username: str
    role: str
    expires_at: int


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def jwt_secret() -> str:
    # Set JWT_SECRET outside development.
    return os.environ.get("JWT_SECRET", "").strip() or DEFAULT_JWT_SECRET


def jwt_algorithm() -> str:
    return os.environ.get("JWT_ALG", "").strip() or "HS256"


def access_token_expire_minutes() -> int:
    return _env_int("ACCESS_TOKEN_EXPIRE_MIN", 24 * 60)


def bcrypt_rounds() -> int:
    # bcrypt accepts 4..31.
    return min(max(_env_int("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS), 4), 31)


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt(rounds=bcrypt_rounds())).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        # Not a bcrypt hash (e.g. a row seeded by hand).
        return False


def build_access_token(*, user_id: int, username: str, role: str) -> str:
    issued_at = int(time.time())
    payload = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "iss": TOKEN_ISSUER,
        "iat": issued_at,
        "exp": issued_at + access_token_expire_minutes() * 60,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def _claims(payload: dict[str, Any]) -> AccessClaims:
    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthSecurityError("Invalid access token subject.")
    return AccessClaims(
        user_id=int(subject),
        username=str(payload.get("username") or ""),
        role=str(payload.get("role") or ""),
        expires_at=int(payload["exp"]),
    )


def decode_access_token(token: str) -> AccessClaims:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            jwt_secret(),
            algorithms=[jwt_algorithm()],
            issuer=TOKEN_ISSUER,
            options={"require": ["sub", "exp", "iss"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    return _claims(payload)
