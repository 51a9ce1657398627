"""
Grade persistence (raw SQL). Grades have no archive state.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.sql import set_clause

_GRADE_SELECT = """
    SELECT
      g.grade_id,
      g.enrollment_id,
      g.midterm_grade,
      g.final_grade,
      g.remarks,
      g.date_recorded,
      e.academic_year,
      e.semester,
      s.student_id,
      s.student_number,
      s.first_name || ' ' || s.last_name AS student_name,
      c.course_code,
      c.course_name,
      c.units
    FROM grades g
    JOIN enrollments e ON g.enrollment_id = e.enrollment_id
    JOIN students s ON e.student_id = s.student_id
    JOIN courses c ON e.course_id = c.course_id
"""


async def list_grades(
    db: QueryExecutor,
    *,
    student_id: int | None = None,
    enrollment_id: int | None = None,
) -> Result:
    filters = ["s.is_active = true"]
    params: list[Any] = []
    if student_id is not None:
        params.append(student_id)
        filters.append(f"s.student_id = ${len(params)}")
    if enrollment_id is not None:
        params.append(enrollment_id)
        filters.append(f"g.enrollment_id = ${len(params)}")

    return await db.execute(
        f"""
        {_GRADE_SELECT}
        WHERE {" AND ".join(filters)}
        ORDER BY g.date_recorded DESC, g.grade_id DESC
        """,
        params,
    )


async def get_grade(db: QueryExecutor, grade_id: int) -> Result:
    return await db.execute(f"{_GRADE_SELECT} WHERE g.grade_id = $1", [grade_id])


async def find_grade_for_enrollment(db: QueryExecutor, enrollment_id: int) -> Result:
    return await db.execute("SELECT grade_id FROM grades WHERE enrollment_id = $1", [enrollment_id])


async def student_for_enrollment(db: QueryExecutor, enrollment_id: int) -> Result:
    return await db.execute("SELECT student_id FROM enrollments WHERE enrollment_id = $1", [enrollment_id])


async def student_for_grade(db: QueryExecutor, grade_id: int) -> Result:
    return await db.execute(
        """
        SELECT e.student_id
        FROM enrollments e
        JOIN grades g ON e.enrollment_id = g.enrollment_id
        WHERE g.grade_id = $1
        """,
        [grade_id],
    )


async def insert_grade(
    db: QueryExecutor,
    *,
    enrollment_id: int,
    midterm_grade: Decimal | None,
    final_grade: Decimal | None,
    remarks: str | None,
) -> Result:
    return await db.execute(
        """
        INSERT INTO grades (enrollment_id, midterm_grade, final_grade, remarks)
        VALUES ($1, $2, $3, $4)
        RETURNING grade_id
        """,
        [enrollment_id, midterm_grade, final_grade, remarks],
    )


async def update_grade(db: QueryExecutor, grade_id: int, values: dict[str, Any]) -> Result:
    clause, params = set_clause(values)
    return await db.execute(
        f"UPDATE grades SET {clause} WHERE grade_id = ${len(params) + 1}",
        [*params, grade_id],
    )


async def delete_grade(db: QueryExecutor, grade_id: int) -> Result:
    return await db.execute("DELETE FROM grades WHERE grade_id = $1", [grade_id])
