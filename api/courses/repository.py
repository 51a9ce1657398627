"""
Course persistence (raw SQL). Courses have no archive state: delete removes
the row.
"""

from __future__ import annotations

from typing import Any

from core.db import QueryExecutor
from core.errors import Result
from core.sql import insert_clause, set_clause

COURSE_FIELDS = ("program_id", "course_code", "course_name", "units", "semester", "year_level")


async def list_courses(
    db: QueryExecutor,
    *,
    program_id: int | None = None,
    semester: str | None = None,
    year_level: int | None = None,
) -> Result:
    filters = ["1 = 1"]
    params: list[Any] = []
    for column, value in (("c.program_id", program_id), ("c.semester", semester), ("c.year_level", year_level)):
        if value is None or value == "":
            continue
        params.append(value)
        filters.append(f"{column} = ${len(params)}")

    return await db.execute(
        f"""
        SELECT c.*, p.program_name, p.program_code
        FROM courses c
        LEFT JOIN programs p ON c.program_id = p.program_id
        WHERE {" AND ".join(filters)}
        ORDER BY c.course_code
        """,
        params,
    )


async def get_course(db: QueryExecutor, course_id: int) -> Result:
    return await db.execute(
        """
        SELECT c.*, p.program_name, p.program_code
        FROM courses c
        LEFT JOIN programs p ON c.program_id = p.program_id
        WHERE c.course_id = $1
        """,
        [course_id],
    )


async def insert_course(db: QueryExecutor, values: dict[str, Any]) -> Result:
    columns, placeholders = insert_clause(values)
    return await db.execute(
        f"INSERT INTO courses ({columns}) VALUES ({placeholders}) RETURNING course_id",
        list(values.values()),
    )


async def update_course(db: QueryExecutor, course_id: int, values: dict[str, Any]) -> Result:
    clause, params = set_clause(values)
    return await db.execute(
        f"UPDATE courses SET {clause} WHERE course_id = ${len(params) + 1}",
        [*params, course_id],
    )


async def delete_course(db: QueryExecutor, course_id: int) -> Result:
    return await db.execute("DELETE FROM courses WHERE course_id = $1", [course_id])
