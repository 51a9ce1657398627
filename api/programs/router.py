"""
Program API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from archive.service import PROGRAM, ArchiveManager, get_archive_manager
from auth import dependencies as auth_dependencies
from auth.schemas import Actor
from core.db import QueryExecutor, get_executor
from core.http import unwrap

from . import repository, schemas, service

router = APIRouter(prefix="/programs")


@router.get("")
async def list_programs(
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await repository.list_programs(db))


@router.get("/archived")
async def list_archived_programs(
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await repository.list_archived_programs(db))


@router.get("/{program_id}")
async def get_program(
    program_id: int,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.get_program(db, program_id)
    return unwrap(result.single("Program not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_program(
    payload: schemas.ProgramCreate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.create_program(db, payload.model_dump(), actor_id=actor.id)
    return unwrap(result, message="Program created successfully.")


@router.put("/{program_id}")
async def update_program(
    program_id: int,
    payload: schemas.ProgramUpdate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.update_program(db, program_id, payload.model_dump(exclude_unset=True), actor_id=actor.id)
    return unwrap(result, message="Program updated successfully.")


@router.delete("/{program_id}")
async def archive_program(
    program_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.archive(PROGRAM, program_id, actor_id=actor.id)
    return unwrap(result, message="Program archived successfully.")


@router.put("/{program_id}/restore")
async def restore_program(
    program_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.restore(PROGRAM, program_id, actor_id=actor.id)
    return unwrap(result, message="Program restored successfully.")
