"""
Major API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from archive.service import MAJOR, ArchiveManager, get_archive_manager
from auth import dependencies as auth_dependencies
from auth.schemas import Actor
from core.db import QueryExecutor, get_executor
from core.errors import Result
from core.http import unwrap
from core.schema import SchemaCapabilities, get_capabilities

from . import repository, schemas, service

router = APIRouter(prefix="/majors")


@router.get("")
async def list_majors(
    program_id: int | None = Query(default=None),
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    return unwrap(await repository.list_majors(db, capabilities, program_id=program_id))


@router.get("/archived")
async def list_archived_majors(
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    if not capabilities.major_archivable:
        return unwrap(Result.ok([]))
    return unwrap(await repository.list_majors(db, capabilities, active=False))


@router.get("/{major_id}")
async def get_major(
    major_id: int,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    result = await repository.get_major(db, capabilities, major_id)
    return unwrap(result.single("Major not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_major(
    payload: schemas.MajorCreate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    result = await service.create_major(db, capabilities, payload.model_dump(), actor_id=actor.id)
    return unwrap(result, message="Major created successfully.")


@router.put("/{major_id}")
async def update_major(
    major_id: int,
    payload: schemas.MajorUpdate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
    capabilities: SchemaCapabilities = Depends(get_capabilities),
) -> dict:
    result = await service.update_major(
        db,
        capabilities,
        major_id,
        payload.model_dump(exclude_unset=True),
        actor_id=actor.id,
    )
    return unwrap(result, message="Major updated successfully.")


@router.delete("/{major_id}")
async def archive_major(
    major_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.archive(MAJOR, major_id, actor_id=actor.id)
    return unwrap(result, message="Major archived successfully.")


@router.put("/{major_id}/restore")
async def restore_major(
    major_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.restore(MAJOR, major_id, actor_id=actor.id)
    return unwrap(result, message="Major restored successfully.")
