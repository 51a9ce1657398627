"""
GPA derivation.

`students.gpa` is derived state: it is recomputed from the student's grades
whenever one of them is created, updated or deleted. Lower is better:

    final_grade  points      final_grade  points
    >= 97        1.00        82-84        2.25
    94-96        1.25        79-81        2.50
    91-93        1.50        76-78        2.75
    88-90        1.75        75           3.00
    85-87        2.00        < 75         excluded

Only grades with remarks == "Passed" AND final_grade >= 75 count. The two
fields are not cross-validated when grades are written, so a grade can have
final_grade >= 75 and remarks "Failed"; it is excluded.

GPA = sum(points * units) / sum(units), rounded to 2 decimals, or None when no
grade qualifies.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Mapping

from core.db import QueryExecutor
from core.errors import ErrorCode, Result

logger = logging.getLogger(__name__)

DEFAULT_UNITS = 3.0
PASSING_GRADE = 75.0
PASSED_REMARK = "Passed"

POINT_TABLE: tuple[tuple[float, float], ...] = (
    (97.0, 1.00),
    (94.0, 1.25),
    (91.0, 1.50),
    (88.0, 1.75),
    (85.0, 2.00),
    (82.0, 2.25),
    (79.0, 2.50),
    (76.0, 2.75),
    (75.0, 3.00),
)


def _to_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def grade_point(final_grade: Any) -> float | None:
    grade = _to_float(final_grade)
    if grade is None:
        return None
    for threshold, points in POINT_TABLE:
        if grade >= threshold:
            return points
    return None


def course_units(value: Any) -> float:
    units = _to_float(value)
    # Zero units fall back too, matching how course loads were always counted.
    if not units:
        return DEFAULT_UNITS
    return units


def counts_toward_gpa(row: Mapping[str, Any]) -> bool:
    grade = _to_float(row.get("final_grade"))
    return row.get("remarks") == PASSED_REMARK and grade is not None and grade >= PASSING_GRADE


def compute_gpa(rows: Iterable[Mapping[str, Any]]) -> float | None:
    total_points = 0.0
    total_units = 0.0
    for row in rows:
        if not counts_toward_gpa(row):
            continue
        points = grade_point(row.get("final_grade"))
        if points is None:
            continue
        units = course_units(row.get("units"))
        total_points += points * units
        total_units += units

    if total_units <= 0:
        return None
    try:
        gpa = Decimal(repr(total_points / total_units)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    return float(gpa)


async def recompute_student_gpa(db: QueryExecutor, student_id: int) -> Result:
    """
    Recompute and store one student's GPA. Callable on its own; the grade
    mutations use `refresh_student_gpa` which never fails the caller.
    """
    grades = await db.execute(
        """
        SELECT g.final_grade, g.remarks, c.units
        FROM grades g
        JOIN enrollments e ON g.enrollment_id = e.enrollment_id
        JOIN courses c ON e.course_id = c.course_id
        WHERE e.student_id = $1
          AND g.final_grade IS NOT NULL
        """,
        [student_id],
    )
    if not grades.success:
        return grades

    gpa = compute_gpa(grades.rows)
    updated = await db.execute(
        "UPDATE students SET gpa = $1 WHERE student_id = $2",
        [Decimal(str(gpa)) if gpa is not None else None, student_id],
    )
    if not updated.success:
        return updated
    if updated.data.rows_affected == 0:
        return Result.fail(ErrorCode.NOT_FOUND, "Student not found.")

    logger.info("gpa_recomputed student_id=%s gpa=%s grades=%s", student_id, gpa, len(grades.rows))
    return Result.ok({"student_id": student_id, "gpa": gpa})


async def refresh_student_gpa(db: QueryExecutor, student_id: int | None) -> None:
    """
    Best-effort recompute after a grade mutation.

    This should never raise to the request path; we just log failures.
    """
    if student_id is None:
        return None
    try:
        result = await recompute_student_gpa(db, student_id)
        if not result.success:
            logger.warning(
                "gpa_recompute_failed student_id=%s code=%s error=%s",
                student_id,
                result.error_code,
                result.error,
            )
    except Exception:
        logger.exception("gpa_recompute_failed student_id=%s", student_id)
