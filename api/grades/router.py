"""
Grade API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies
from core.db import QueryExecutor, get_executor
from core.http import unwrap

from . import repository, schemas, service

router = APIRouter(prefix="/grades", dependencies=[Depends(auth_dependencies.require_staff)])


@router.get("")
async def list_grades(
    student_id: int | None = Query(default=None),
    enrollment_id: int | None = Query(default=None),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_grades(db, student_id=student_id, enrollment_id=enrollment_id)
    return unwrap(result)


@router.get("/{grade_id}")
async def get_grade(grade_id: int, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await repository.get_grade(db, grade_id)
    return unwrap(result.single("Grade not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_grade(payload: schemas.GradeCreate, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await service.create_grade(db, payload.model_dump())
    return unwrap(result, message="Grade created successfully.")


@router.put("/{grade_id}")
async def update_grade(
    grade_id: int,
    payload: schemas.GradeUpdate,
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await service.update_grade(db, grade_id, payload.model_dump(exclude_unset=True))
    return unwrap(result, message="Grade updated successfully.")


@router.delete("/{grade_id}")
async def delete_grade(grade_id: int, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await service.delete_grade(db, grade_id)
    return unwrap(result, message="Grade deleted successfully.")
