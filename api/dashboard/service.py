"""
Dashboard counters and recent activity.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.db import QueryExecutor
from core.errors import Result

RECENT_DAYS = 30
ACTIVITY_LIMIT = 5

_COUNTS = {
    "total_students": "SELECT COUNT(*) AS total FROM students WHERE is_active = true AND COALESCE(enrollment_status, '') <> 'Dropped'",
    "total_courses": "SELECT COUNT(*) AS total FROM courses",
    "total_programs": "SELECT COUNT(*) AS total FROM programs WHERE is_active = true",
    "active_enrollments": "SELECT COUNT(*) AS total FROM enrollments WHERE is_active = true",
}


async def _count(db: QueryExecutor, template: str, params: list | None = None) -> Result:
    result = await db.execute(template, params)
    if not result.success:
        return result
    return Result.ok(int((result.first() or {}).get("total") or 0))


async def get_stats(db: QueryExecutor, *, majors_archivable: bool = True) -> Result:
    stats: dict[str, int] = {}
    for name, template in _COUNTS.items():
        counted = await _count(db, template)
        if not counted.success:
            return counted
        stats[name] = counted.data

    majors_sql = "SELECT COUNT(*) AS total FROM majors"
    if majors_archivable:
        majors_sql += " WHERE is_active = true"
    counted = await _count(db, majors_sql)
    if not counted.success:
        return counted
    stats["total_majors"] = counted.data

    since = datetime.now(timezone.utc) - timedelta(days=RECENT_DAYS)
    counted = await _count(
        db,
        "SELECT COUNT(*) AS total FROM enrollments WHERE date_enrolled >= $1 AND is_active = true",
        [since],
    )
    if not counted.success:
        return counted
    stats["recent_enrollments"] = counted.data

    return Result.ok(stats)


async def get_activities(db: QueryExecutor) -> Result:
    enrollments = await db.execute(
        """
        SELECT e.enrollment_id, e.date_enrolled AS occurred_at,
               s.first_name || ' ' || s.last_name AS student_name,
               c.course_code
        FROM enrollments e
        JOIN students s ON e.student_id = s.student_id
        JOIN courses c ON e.course_id = c.course_id
        WHERE e.date_enrolled IS NOT NULL AND e.is_active = true
        ORDER BY e.date_enrolled DESC
        LIMIT $1
        """,
        [ACTIVITY_LIMIT],
    )
    if not enrollments.success:
        return enrollments

    grades = await db.execute(
        """
        SELECT g.grade_id, g.date_recorded AS occurred_at, g.final_grade, g.remarks,
               s.first_name || ' ' || s.last_name AS student_name,
               c.course_code
        FROM grades g
        JOIN enrollments e ON g.enrollment_id = e.enrollment_id
        JOIN students s ON e.student_id = s.student_id
        JOIN courses c ON e.course_id = c.course_id
        WHERE g.date_recorded IS NOT NULL
        ORDER BY g.date_recorded DESC
        LIMIT $1
        """,
        [ACTIVITY_LIMIT],
    )
    if not grades.success:
        return grades

    activities = [{"type": "enrollment", **row} for row in enrollments.rows]
    activities += [{"type": "grade", **row} for row in grades.rows]
    activities.sort(key=lambda item: str(item["occurred_at"]), reverse=True)
    return Result.ok(activities[:ACTIVITY_LIMIT * 2])
