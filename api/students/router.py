"""
Student API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from archive.service import STUDENT, ArchiveManager, get_archive_manager
from auth import dependencies as auth_dependencies
from auth.schemas import Actor
from core.db import QueryExecutor, get_executor
from core.errors import Result
from core.http import unwrap
from grades import gpa

from . import photos, repository, schemas, writer

router = APIRouter(prefix="/students")


@router.get("")
async def list_students(
    search: str | None = Query(default=None),
    program_id: int | None = Query(default=None),
    year_level: int | None = Query(default=None),
    enrollment_status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=repository.DEFAULT_PAGE_SIZE, ge=1, le=repository.MAX_PAGE_SIZE),
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_students(
        db,
        search=search,
        program_id=program_id,
        year_level=year_level,
        enrollment_status=enrollment_status,
        page=page,
        limit=limit,
    )
    return unwrap(result)


# Declared before /{student_id} so "archived" is not parsed as an id.
@router.get("/archived")
async def list_archived_students(
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=repository.DEFAULT_PAGE_SIZE, ge=1, le=repository.MAX_PAGE_SIZE),
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_students(db, active=False, search=search, page=page, limit=limit)
    return unwrap(result)


@router.get("/{student_id}")
async def get_student(
    student_id: int,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await repository.get_student(db, student_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: schemas.StudentCreate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await writer.create_student(db, payload.model_dump(exclude_unset=True), actor_id=actor.id)
    return unwrap(result, message="Student created successfully.")


@router.put("/{student_id}")
async def update_student(
    student_id: int,
    payload: schemas.StudentUpdate,
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await writer.update_student(
        db,
        student_id,
        payload.model_dump(exclude_unset=True),
        actor_id=actor.id,
    )
    return unwrap(result, message="Student updated successfully.")


@router.put("/{student_id}/photo")
async def upload_student_photo(
    student_id: int,
    file: UploadFile = File(...),
    actor: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    reference = await photos.save_photo(file, student_id=student_id)
    try:
        result = await writer.update_student(db, student_id, {}, actor_id=actor.id, photo_url=reference)
    except Exception:
        photos.discard_photo(reference)
        raise
    if not result.success:
        photos.discard_photo(reference)
        return unwrap(result)
    return unwrap(
        Result.ok({"student_id": student_id, "profile_picture_url": reference}),
        message="Photo uploaded successfully.",
    )


@router.delete("/{student_id}")
async def archive_student(
    student_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.archive(STUDENT, student_id, actor_id=actor.id)
    return unwrap(result, message="Student archived successfully.")


@router.put("/{student_id}/restore")
async def restore_student(
    student_id: int,
    actor: Actor = Depends(auth_dependencies.require_staff),
    archive: ArchiveManager = Depends(get_archive_manager),
) -> dict:
    result = await archive.restore(STUDENT, student_id, actor_id=actor.id)
    return unwrap(result, message="Student restored successfully.")


@router.post("/{student_id}/gpa/recompute")
async def recompute_gpa(
    student_id: int,
    _: Actor = Depends(auth_dependencies.require_staff),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    return unwrap(await gpa.recompute_student_gpa(db, student_id))
