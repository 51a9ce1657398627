"""
User management (Admin only). Persistence is shared with login in
`auth.repository`; archive/restore go through the archive manager.
"""

from __future__ import annotations

import logging
from typing import Any

from auth import repository, security
from core.db import QueryExecutor
from core.errors import ErrorCode, Result

logger = logging.getLogger(__name__)

DUPLICATE_USERNAME = "Username already exists."


async def _username_taken(db: QueryExecutor, username: str, *, exclude_id: int | None = None) -> Result | None:
    existing = await repository.get_user_by_username(db, username)
    if not existing.success:
        return existing
    row = existing.first()
    if row is not None and int(row["user_id"]) != exclude_id:
        return Result.fail(ErrorCode.DUPLICATE, DUPLICATE_USERNAME)
    return None


async def create_user(db: QueryExecutor, payload: dict[str, Any]) -> Result:
    blocked = await _username_taken(db, payload["username"])
    if blocked is not None:
        return blocked

    inserted = await repository.create_user(
        db,
        username=payload["username"],
        password_hash=security.hash_password(payload["password"]),
        role=payload["role"],
    )
    if not inserted.success:
        return inserted

    user_id = inserted.data.generated_id
    logger.info("user_created user_id=%s role=%s", user_id, payload["role"])
    return Result.ok({"user_id": user_id, "username": repository.normalize_username(payload["username"]), "role": payload["role"]})


async def update_user(db: QueryExecutor, user_id: int, payload: dict[str, Any]) -> Result:
    values: dict[str, Any] = {}
    if payload.get("username"):
        blocked = await _username_taken(db, payload["username"], exclude_id=user_id)
        if blocked is not None:
            return blocked
        values["username"] = repository.normalize_username(payload["username"])
    if payload.get("role"):
        values["role"] = payload["role"]
    if payload.get("password"):
        values["password_hash"] = security.hash_password(payload["password"])

    if not values:
        return Result.fail(ErrorCode.INPUT_REJECTED, "No fields to update.")

    updated = await repository.update_user(db, user_id, values)
    if not updated.success:
        return updated
    if updated.data.rows_affected == 0:
        return Result.fail(ErrorCode.NOT_FOUND, "User not found.")
    return Result.ok({"user_id": user_id})
