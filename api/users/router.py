"""
User management API endpoints (Admin only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from archive.service import USER, ArchiveManager, get_archive_manager
from auth import dependencies as auth_dependencies
from auth import repository
from auth.schemas import Actor
from core.db import QueryExecutor, get_executor
from core.http import unwrap

from . import schemas, service

router = APIRouter(prefix="/users")


@router.get("")
async def list_users(
    _: Actor = Depends(auth_dependencies.require_admin),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await repository.list_users(db))


@router.get("/archived")
async def list_archived_users(
    _: Actor = Depends(auth_dependencies.require_admin),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await repository.list_users(db, active=False))


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    _: Actor = Depends(auth_dependencies.require_admin),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.get_user_by_id(db, user_id)
    return unwrap(result.single("User not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: schemas.UserCreate,
    _: Actor = Depends(auth_dependencies.require_admin),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.create_user(db, payload.model_dump())
    return unwrap(result, message="User created successfully.")


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    _: Actor = Depends(auth_dependencies.require_admin),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.update_user(db, user_id, payload.model_dump(exclude_unset=True))
    return unwrap(result, message="User updated successfully.")


@router.delete("/{user_id}")
async def archive_user(
    user_id: int,
    actor: Actor = Depends(auth_dependencies.require_admin),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.archive(USER, user_id, actor_id=actor.id)
    return unwrap(result, message="User archived successfully.")


@router.put("/{user_id}/restore")
async def restore_user(
    user_id: int,
    actor: Actor = Depends(auth_dependencies.require_admin),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.restore(USER, user_id, actor_id=actor.id)
    return unwrap(result, message="User restored successfully.")
