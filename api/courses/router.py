"""
Course API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from auth import dependencies as auth_dependencies
from core.db import QueryExecutor, get_executor
from core.errors import ErrorCode, Result
from core.http import unwrap
from core.sql import pick, to_decimal

from . import repository, schemas

router = APIRouter(prefix="/courses", dependencies=[Depends(auth_dependencies.require_staff)])


def _values(payload: dict) -> dict:
    values = pick(payload, repository.COURSE_FIELDS)
    if "units" in values:
        values["units"] = to_decimal(values["units"])
    return values


@router.get("")
async def list_courses(
    program_id: int | None = Query(default=None),
    semester: str | None = Query(default=None),
    year_level: int | None = Query(default=None),
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    result = await repository.list_courses(db, program_id=program_id, semester=semester, year_level=year_level)
    return unwrap(result)


@router.get("/{course_id}")
async def get_course(course_id: int, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await repository.get_course(db, course_id)
    return unwrap(result.single("Course not found."))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(payload: schemas.CourseCreate, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await repository.insert_course(db, _values(payload.model_dump()))
    if result.success:
        result = Result.ok({"course_id": result.data.generated_id})
    return unwrap(result, message="Course created successfully.")


@router.put("/{course_id}")
async def update_course(
    course_id: int,
    payload: schemas.CourseUpdate,
    db: QueryExecutor = Depends(get_executor),
) -> dict:
    values = _values(payload.model_dump(exclude_unset=True))
    if not values:
        return unwrap(Result.fail(ErrorCode.INPUT_REJECTED, "No fields to update."))

    result = await repository.update_course(db, course_id, values)
    if result.success:
        if result.data.rows_affected == 0:
            result = Result.fail(ErrorCode.NOT_FOUND, "Course not found.")
        else:
            result = Result.ok({"course_id": course_id})
    return unwrap(result, message="Course updated successfully.")


@router.delete("/{course_id}")
async def delete_course(course_id: int, db: QueryExecutor = Depends(get_executor)) -> dict:
    result = await repository.delete_course(db, course_id)
    if result.success:
        if result.data.rows_affected == 0:
            result = Result.fail(ErrorCode.NOT_FOUND, "Course not found.")
        else:
            result = Result.ok({"course_id": course_id})
    return unwrap(result, message="Course deleted successfully.")
