"""
Enrollment persistence (raw SQL).

Uniqueness of (student, course, academic_year, semester) is checked among
active rows only; archived duplicates are kept as history.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.sql import set_clause

DEFAULT_STATUS = "Enrolled"

_ENROLLMENT_SELECT = """
    SELECT
      e.*,
      s.student_number,
      s.first_name,
      s.middle_name,
      s.last_name,
      s.first_name || ' ' || s.last_name AS student_name,
      c.course_code,
      c.course_name,
      c.units
    FROM enrollments e
    JOIN students s ON e.student_id = s.student_id
    JOIN courses c ON e.course_id = c.course_id
"""


async def list_enrollments(
    db: QueryExecutor,
    *,
    active: bool = True,
    student_id: int | None = None,
    academic_year: str | None = None,
    semester: str | None = None,
) -> Result:
    if active:
        filters = ["s.is_active = true", "e.is_active = true"]
    else:
        filters = ["e.is_active = false"]
    params: list[Any] = []
    for column, value in (("e.student_id", student_id), ("e.academic_year", academic_year), ("e.semester", semester)):
        if value is None or value == "":
            continue
        params.append(value)
        filters.append(f"{column} = ${len(params)}")

    return await db.execute(
        f"""
        {_ENROLLMENT_SELECT}
        WHERE {" AND ".join(filters)}
        ORDER BY e.date_enrolled DESC, e.enrollment_id DESC
        """,
        params,
    )


async def get_enrollment(db: QueryExecutor, enrollment_id: int) -> Result:
    return await db.execute(f"{_ENROLLMENT_SELECT} WHERE e.enrollment_id = $1", [enrollment_id])


async def find_active_duplicate(
    db: QueryExecutor,
    *,
    student_id: int,
    course_id: int,
    academic_year: str,
    semester: str,
    exclude_id: int | None = None,
) -> Result:
    params: list[Any] = [student_id, course_id, academic_year, semester]
    exclude = ""
    if exclude_id is not None:
        params.append(exclude_id)
        exclude = " AND enrollment_id <> $5"
    return await db.execute(
        f"""
        SELECT enrollment_id
        FROM enrollments
        WHERE student_id = $1
          AND course_id = $2
          AND academic_year = $3
          AND semester = $4
          AND is_active = true{exclude}
        """,
        params,
    )


async def insert_enrollment(
    db: QueryExecutor,
    *,
    student_id: int,
    course_id: int,
    academic_year: str,
    semester: str,
    status: str | None,
) -> Result:
    return await db.execute(
        """
        INSERT INTO enrollments (student_id, course_id, academic_year, semester, date_enrolled, status, is_active)
        VALUES ($1, $2, $3, $4, CURRENT_TIMESTAMP, $5, true)
        RETURNING enrollment_id
        """,
        [student_id, course_id, academic_year, semester, status or DEFAULT_STATUS],
    )


async def update_enrollment(db: QueryExecutor, enrollment_id: int, values: dict[str, Any]) -> Result:
    clause, params = set_clause(values)
    return await db.execute(
        f"UPDATE enrollments SET {clause} WHERE enrollment_id = ${len(params) + 1}",
        [*params, enrollment_id],
    )
