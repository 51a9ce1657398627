"""
Enrollment create/update rules.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import ErrorCode, Result
from core.sql import pick

from . import repository

ENROLLMENT_FIELDS = ("student_id", "course_id", "academic_year", "semester", "date_enrolled", "status")
PERIOD_FIELDS = ("student_id", "course_id", "academic_year", "semester")

ALREADY_ENROLLED = "Student is already enrolled in this course for the specified period."


async def _check_period(db: QueryExecutor, period: dict[str, Any], *, exclude_id: int | None = None) -> Result | None:
    clash = await repository.find_active_duplicate(db, **period, exclude_id=exclude_id)
    if not clash.success:
        return clash
    if clash.rows:
        return Result.fail(ErrorCode.DUPLICATE, ALREADY_ENROLLED)
    return None


async def create_enrollment(db: QueryExecutor, payload: dict[str, Any]) -> Result:
    period = pick(payload, PERIOD_FIELDS)
    blocked = await _check_period(db, period)
    if blocked is not None:
        return blocked

    inserted = await repository.insert_enrollment(db, **period, status=payload.get("status"))
    if not inserted.success:
        return inserted
    return Result.ok({"enrollment_id": inserted.data.generated_id})


async def update_enrollment(db: QueryExecutor, enrollment_id: int, payload: dict[str, Any]) -> Result:
    current = await repository.get_enrollment(db, enrollment_id)
    if not current.success:
        return current
    row = current.first()
    if row is None:
        return Result.fail(ErrorCode.NOT_FOUND, "Enrollment not found.")

    values = pick(payload, ENROLLMENT_FIELDS)
    if not values:
        return Result.fail(ErrorCode.INPUT_REJECTED, "No fields to update.")

    # Moving an active enrollment onto another active one's period is a duplicate.
    if row.get("is_active") and any(name in values for name in PERIOD_FIELDS):
        period = {name: values.get(name, row[name]) for name in PERIOD_FIELDS}
        blocked = await _check_period(db, period, exclude_id=enrollment_id)
        if blocked is not None:
            return blocked

    updated = await repository.update_enrollment(db, enrollment_id, values)
    if not updated.success:
        return updated
    return Result.ok({"enrollment_id": enrollment_id})
