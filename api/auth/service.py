"""
Auth business logic.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from core.db import QueryExecutor
from core.errors import Result
from core.http import unwrap

from . import repository, schemas, security


def _to_actor(user_row: dict) -> schemas.Actor:
    return schemas.Actor(
        id=int(user_row["user_id"]),
        username=str(user_row["username"]),
        role=str(user_row["role"]),
    )


def _require_success(result: Result) -> None:
    if not result.success:
        unwrap(result)


async def login(db: QueryExecutor, payload: schemas.LoginRequest) -> schemas.LoginResponse:
    result = await repository.get_user_by_username(db, payload.username)
    _require_success(result)

    user_row = result.first()
    if user_row is None or not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials.",
        )

    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is archived.",
        )

    actor = _to_actor(user_row)
    token = security.build_access_token(user_id=actor.id, username=actor.username, role=actor.role)
    return schemas.LoginResponse(access_token=token, user=actor)


async def get_actor_from_access_token(db: QueryExecutor, access_token: str) -> schemas.Actor:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    result = await repository.get_user_by_id(db, claims.user_id)
    _require_success(result)

    # The database, not the token, is the source of truth for role and state.
    user_row = result.first()
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token - user not found.",
        )
    if not bool(user_row.get("is_active", False)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is archived.",
        )
    return _to_actor(user_row)


async def change_password(
    db: QueryExecutor,
    actor: schemas.Actor,
    payload: schemas.ChangePasswordRequest,
) -> dict[str, bool]:
    result = await repository.get_user_by_id(db, actor.id, with_hash=True)
    _require_success(result)

    user_row = result.first()
    if user_row is None or not security.verify_password(
        payload.current_password, str(user_row.get("password_hash") or "")
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect.",
        )

    updated = await repository.set_password_hash(db, actor.id, security.hash_password(payload.new_password))
    _require_success(updated)
    return {"ok": True}
