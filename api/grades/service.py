"""
Grade mutations. Every successful create, update or delete recomputes the
owning student's GPA before returning; recomputation failures are logged and
never undo or fail the grade change.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import ErrorCode, Result
from core.sql import to_decimal

from . import gpa, repository

GRADE_FIELDS = ("midterm_grade", "final_grade", "remarks")
NUMERIC_FIELDS = ("midterm_grade", "final_grade")


def _student_id(result: Result) -> int | None:
    row = result.first()
    if row is None or row.get("student_id") is None:
        return None
    return int(row["student_id"])


async def create_grade(db: QueryExecutor, payload: dict[str, Any]) -> Result:
    enrollment_id = int(payload["enrollment_id"])

    existing = await repository.find_grade_for_enrollment(db, enrollment_id)
    if not existing.success:
        return existing
    if existing.rows:
        return Result.fail(ErrorCode.DUPLICATE, "Grade already exists for this enrollment.")

    inserted = await repository.insert_grade(
        db,
        enrollment_id=enrollment_id,
        midterm_grade=to_decimal(payload.get("midterm_grade")),
        final_grade=to_decimal(payload.get("final_grade")),
        remarks=payload.get("remarks"),
    )
    if not inserted.success:
        return inserted

    owner = await repository.student_for_enrollment(db, enrollment_id)
    await gpa.refresh_student_gpa(db, _student_id(owner))
    return Result.ok({"grade_id": inserted.data.generated_id})


async def update_grade(db: QueryExecutor, grade_id: int, payload: dict[str, Any]) -> Result:
    values = {name: payload[name] for name in GRADE_FIELDS if name in payload}
    for name in NUMERIC_FIELDS:
        if name in values:
            values[name] = to_decimal(values[name])

    if values:
        updated = await repository.update_grade(db, grade_id, values)
        if not updated.success:
            return updated
        found = updated.data.rows_affected > 0
    else:
        current = await repository.get_grade(db, grade_id)
        if not current.success:
            return current
        found = bool(current.rows)

    if not found:
        return Result.fail(ErrorCode.NOT_FOUND, "Grade not found.")

    owner = await repository.student_for_grade(db, grade_id)
    await gpa.refresh_student_gpa(db, _student_id(owner))
    return Result.ok({"grade_id": grade_id})


async def delete_grade(db: QueryExecutor, grade_id: int) -> Result:
    # Resolve the owner first: afterwards the join has nothing to find.
    owner = await repository.student_for_grade(db, grade_id)

    deleted = await repository.delete_grade(db, grade_id)
    if not deleted.success:
        return deleted
    if deleted.data.rows_affected == 0:
        return Result.fail(ErrorCode.NOT_FOUND, "Grade not found.")

    await gpa.refresh_student_gpa(db, _student_id(owner))
    return Result.ok({"grade_id": grade_id})
