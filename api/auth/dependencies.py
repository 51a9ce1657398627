"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, Header, HTTPException, status

from core.db import QueryExecutor, get_executor

from . import schemas, service

ADMIN_ROLES = ("Admin",)
REGISTRAR_ROLES = ("Admin", "Registrar")
STAFF_ROLES = ("Admin", "Registrar", "Staff")


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required.",
        )

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format.",
        )

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization must be: Bearer <token>.",
        )
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_actor(
    access_token: str = Depends(get_bearer_token),
    db: QueryExecutor = Depends(get_executor),
) -> schemas.Actor:
    return await service.get_actor_from_access_token(db, access_token)


def require_roles(*roles: str) -> Callable:
    async def dependency(actor: schemas.Actor = Depends(get_current_actor)) -> schemas.Actor:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions.",
            )
        return actor

    return dependency


require_admin = require_roles(*ADMIN_ROLES)
require_staff = require_roles(*STAFF_ROLES)
