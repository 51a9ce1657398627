"""
Enrollment API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from archive.service import ENROLLMENT, ArchiveManager, get_archive_manager
from auth import dependencies as auth_dependencies
from auth.schemas import Actor
from core.db import QueryExecutor, get_executor
from core.http import unwrap

from . import repository, schemas, service

router = APIRouter(prefix="/enrollments")


@router.get("")
async def list_enrollments(
    student_id: int | None = Query(default=None),
    academic_year: str | None = Query(default=None),
    semester: str | None = Query(default=None),
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_enrollments(
        db,
        student_id=student_id,
        academic_year=academic_year,
        semester=semester,
    )
    return unwrap(result)


@router.get("/archived")
async def list_archived_enrollments(
    student_id: int | None = Query(default=None),
    academic_year: str | None = Query(default=None),
    semester: str | None = Query(default=None),
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_enrollments(
        db,
        active=False,
        student_id=student_id,
        academic_year=academic_year,
        semester=semester,
    )
    return unwrap(result)


@router.get("/{enrollment_id}")
async def get_enrollment(
    enrollment_id: int,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.get_enrollment(db, enrollment_id)
    return unwrap(result.single("Enrollment not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    payload: schemas.EnrollmentCreate,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.create_enrollment(db, payload.model_dump())
    return unwrap(result, message="Enrollment created successfully.")


@router.put("/{enrollment_id}")
async def update_enrollment(
    enrollment_id: int,
    payload: schemas.EnrollmentUpdate,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.update_enrollment(db, enrollment_id, payload.model_dump(exclude_unset=True))
    return unwrap(result, message="Enrollment updated successfully.")


@router.delete("/{enrollment_id}")
async def archive_enrollment(
    enrollment_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.archive(ENROLLMENT, enrollment_id, actor_id=actor.id)
    return unwrap(result, message="Enrollment archived successfully.")


@router.put("/{enrollment_id}/restore")
async def restore_enrollment(
    enrollment_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.restore(ENROLLMENT, enrollment_id, actor_id=actor.id)
    return unwrap(result, message="Enrollment restored successfully.")
