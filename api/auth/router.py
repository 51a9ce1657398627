"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.db import QueryExecutor, get_executor

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/login")
async def login(
    payload: schemas.LoginRequest,
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    response = await service.login(db, payload)
    return {"success": True, "data": response.model_dump()}


@router.get("/me")
async def me(actor: schemas.Actor = Depends(dependencies.get_current_actor)) -> dict:
    return {"success": True, "data": actor.model_dump()}


@router.post("/change-password")
async def change_password(
    payload: schemas.ChangePasswordRequest,
    actor: schemas.Actor = Depends(dependencies.get_current_actor),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.change_password(db, actor, payload)
    return {"success": True, "data": result}
