"""
User persistence helpers (raw SQL).

Shared by login and by user management (`users/`).
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.sql import set_clause

USER_COLUMNS = "user_id, username, role, is_active, created_at"


def normalize_username(username: str) -> str:
    return (username or "").strip()


async def get_user_by_username(db: QueryExecutor, username: str) -> Result:
    return await db.execute(
        """
        SELECT user_id, username, password_hash, role, is_active
        FROM users
        WHERE username = $1
        """,
        [normalize_username(username)],
    )


async def get_user_by_id(db: QueryExecutor, user_id: int, *, with_hash: bool = False) -> Result:
    columns = USER_COLUMNS + (", password_hash" if with_hash else "")
    return await db.execute(
        f"""
        SELECT {columns}
        FROM users
        WHERE user_id = $1
        """,
        [user_id],
    )


async def list_users(db: QueryExecutor, *, active: bool = True) -> Result:
    return await db.execute(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE is_active = $1
        ORDER BY created_at DESC, user_id DESC
        """,
        [active],
    )


async def create_user(db: QueryExecutor, *, username: str, password_hash: str, role: str) -> Result:
    return await db.execute(
        """
        INSERT INTO users (username, password_hash, role, is_active)
        VALUES ($1, $2, $3, true)
        RETURNING user_id
        """,
        [normalize_username(username), password_hash, role],
    )


async def update_user(db: QueryExecutor, user_id: int, values: dict[str, Any]) -> Result:
    clause, params = set_clause(values)
    return await db.execute(
        f"""
        UPDATE users
        SET {clause}
        WHERE user_id = ${len(params) + 1}
          AND is_active = true
        """,
        [*params, user_id],
    )


async def set_password_hash(db: QueryExecutor, user_id: int, password_hash: str) -> Result:
    return await db.execute(
        "UPDATE users SET password_hash = $1 WHERE user_id = $2",
        [password_hash, user_id],
    )
